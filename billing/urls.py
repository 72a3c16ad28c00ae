"""
Billing URLs
"""
from django.urls import path
from billing import views

urlpatterns = [
    path('bills/custom/', views.custom_bill_view, name='bill-custom'),
    path('bills/<int:pk>/mark-paid/', views.bill_mark_paid_view, name='bill-mark-paid'),
    path('bills/<int:pk>/send-whatsapp/', views.bill_send_view, name='bill-send-whatsapp'),
    path('payment/<str:token>/', views.public_payment_view, name='public-payment'),
]
