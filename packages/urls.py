"""
Package URLs
"""
from django.urls import path
from packages import views

urlpatterns = [
    path('students/<int:student_id>/packages/', views.student_packages_view, name='student-packages'),
    path('students/<int:student_id>/packages/rounds/', views.student_package_rounds_view, name='student-package-rounds'),
    path('packages/finished/', views.finished_packages_view, name='packages-finished'),
    path('packages/bulk-notify/', views.packages_bulk_notify_view, name='packages-bulk-notify'),
    path('packages/<int:pk>/deduct/', views.package_deduct_view, name='package-deduct'),
    path('packages/<int:pk>/reactivate/', views.package_reactivate_view, name='package-reactivate'),
    path('packages/<int:pk>/bills-summary/', views.package_bills_summary_view, name='package-bills-summary'),
    path('packages/<int:pk>/notify/', views.package_notify_view, name='package-notify'),
    path('packages/<int:pk>/notification-history/', views.package_notification_history_view, name='package-notification-history'),
    path('packages/<int:pk>/mark-paid/', views.package_mark_paid_view, name='package-mark-paid'),
]
