"""
Contact Management Admin URL Configuration

Separate admin URLs for contact message management.

Ids are matched as plain strings so a malformed id reaches the view and
is answered with 400 rather than a routing 404.
"""
from django.urls import path
from .views import (
    ContactMessageListView,
    ContactMessageDetailView,
    ContactMessageStatusView,
    ContactStatsView
)

app_name = 'contact_admin'

urlpatterns = [
    path('contact-messages/', ContactMessageListView.as_view(), name='message-list'),
    path('contact-messages/<str:id>/', ContactMessageDetailView.as_view(), name='message-detail'),
    path('contact-messages/<str:id>/status/', ContactMessageStatusView.as_view(), name='message-status'),
    path('contact-stats/', ContactStatsView.as_view(), name='stats'),
]
