"""Root URL configuration for backlinker_tool."""

from django.urls import include, path

urlpatterns = [
    path('', include('backlinker.urls')),
]
