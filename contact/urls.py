"""
Contact Management URL Configuration
"""
from django.urls import path
from .views import ContactFormSubmitView, ContactHealthView

app_name = 'contact'

# Public URLs (no auth required)
urlpatterns = [
    path('submit', ContactFormSubmitView.as_view(), name='submit'),
    path('health', ContactHealthView.as_view(), name='health'),
]
