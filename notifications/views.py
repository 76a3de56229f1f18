# notifications/views.py
import logging

from django.conf import settings
from django.db import DatabaseError
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.constants import MSG_INVALID_ACTION
from core.forms import int_list, list_param
from core.pagination import paginate, pagination_meta
from core.services import ActionResult
from core.views import action_response, api_error, save_error
from .models import Notification
from .serializers import NotificationSerializer

logger = logging.getLogger("cos.notifications")

PER_PAGE = settings.PROGRAM_SETTINGS["ITEMS_PER_PAGE"]
FILTERS = ("all", "unread") + tuple(choice for choice, _ in Notification.TYPE_CHOICES)


class NotificationCenterView(APIView):
    """
    GET  /api/notifications/?filter=unread&page=2
    POST /api/notifications/  {action: mark_read|mark_unread|mark_all_read|
                               delete_notification|delete_read, notification_id}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        qs = Notification.objects.filter(user=request.user)

        current = request.query_params.get("filter", "all")
        if current not in FILTERS:
            current = "all"
        if current == "unread":
            qs = qs.filter(is_read=False)
        elif current != "all":
            qs = qs.filter(type=current)

        page = paginate(qs, request.query_params.get("page"), PER_PAGE)

        counts = Notification.objects.filter(user=request.user).aggregate(
            all=Count("id"),
            unread=Count("id", filter=Q(is_read=False)),
            **{
                type_: Count("id", filter=Q(type=type_))
                for type_, _ in Notification.TYPE_CHOICES
            },
        )

        return Response({
            "filter": current,
            "counts": counts,
            "results": NotificationSerializer(page["items"], many=True).data,
            "pagination": pagination_meta(page),
        })

    def post(self, request):
        action = request.data.get("action", "")
        handler = {
            "mark_read": self._mark_read,
            "mark_unread": self._mark_unread,
            "mark_all_read": self._mark_all_read,
            "delete_notification": self._delete,
            "delete_read": self._delete_read,
        }.get(action)
        if handler is None:
            return api_error(MSG_INVALID_ACTION)

        try:
            result = handler(request)
        except DatabaseError:
            return save_error(logger, f"Notification action '{action}'", user=request.user.pk)
        return action_response(result)

    def _own(self, request):
        ids = int_list(list_param(request.data, "notification_id") or list_param(request.data, "ids"))
        return Notification.objects.filter(user=request.user, id__in=ids)

    def _mark_read(self, request):
        updated = self._own(request).filter(is_read=False).update(is_read=True, read_at=timezone.now())
        return ActionResult.success("Notification marked as read.", updated=updated)

    def _mark_unread(self, request):
        updated = self._own(request).update(is_read=False, read_at=None)
        return ActionResult.success("Notification marked as unread.", updated=updated)

    def _mark_all_read(self, request):
        updated = Notification.objects.filter(user=request.user, is_read=False).update(
            is_read=True, read_at=timezone.now()
        )
        return ActionResult.success(f"{updated} notifications marked as read.", updated=updated)

    def _delete(self, request):
        deleted, _ = self._own(request).delete()
        if not deleted:
            return ActionResult.error("Notification not found.")
        return ActionResult.success("Notification deleted.", deleted=deleted)

    def _delete_read(self, request):
        deleted, _ = Notification.objects.filter(user=request.user, is_read=True).delete()
        return ActionResult.success(f"{deleted} read notifications deleted.", deleted=deleted)
