from django.urls import path

from .views import NotificationCenterView

urlpatterns = [
    path("", NotificationCenterView.as_view(), name="notification-list"),
]
