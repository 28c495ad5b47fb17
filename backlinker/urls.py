"""URL configuration for the backlinker app.

Only the two pipeline triggers are exposed over HTTP; everything else is
driven through management commands.
"""

from django.urls import path

from . import views

app_name = 'backlinker'

urlpatterns = [
    path('api/analyze/', views.analyze, name='analyze'),
    path('api/link-checks/', views.link_checks, name='link_checks'),
]
