from django.urls import path

from .views import ProfileView, UserCreateView, UserListView, UserManageView

urlpatterns = [
    path("", UserListView.as_view(), name="user-list"),
    path("create/", UserCreateView.as_view(), name="user-create"),
    path("profile/", ProfileView.as_view(), name="user-profile-me"),
    path("<int:user_id>/", UserManageView.as_view(), name="user-manage"),
    path("<int:user_id>/profile/", ProfileView.as_view(), name="user-profile"),
]
