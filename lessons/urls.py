"""
Class URLs
"""
from django.urls import path
from lessons import views

urlpatterns = [
    path('classes/<int:pk>/status/', views.class_status_view, name='class-status'),
]
