"""
URL configuration for the portfolio contact service.

Public form endpoints live under /api/contact/, operator endpoints under
/api/admin/. The Django admin stays at /admin/.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    # Contact form (public)
    path('api/contact/', include('contact.urls')),

    # Contact management (staff)
    path('api/admin/', include('contact.admin_urls')),
]
