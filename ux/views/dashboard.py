# ux/views/dashboard.py

from rest_framework.views import APIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ux.services.dashboard import get_dashboard_summary


class UXDashboardSummaryView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        summary = get_dashboard_summary(request.user)

        return Response({
            "meta": {"success": True},
            "data": {
                "user": {"id": request.user.pk, "name": request.user.full_name},
                **summary,
            }
        })
