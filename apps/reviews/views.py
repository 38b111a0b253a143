"""API views for vehicle reviews."""

from __future__ import annotations

from django.db.models import Avg, Count  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import VehicleReview
from .serializers import ReviewCreateSerializer, ReviewSerializer
from .services import submit_review
from apps.bookings.views import BookingErrorMixin


class ReviewViewSet(
    BookingErrorMixin,
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Bewertungen lesen (öffentlich) und nach der Miete abgeben."""

    queryset = VehicleReview.objects.select_related('user').all()
    permission_classes = [permissions.IsAuthenticatedOrReadOnly]
    filterset_fields = ['vehicle', 'rating']
    lookup_value_regex = '[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}'

    def get_serializer_class(self):  # type: ignore
        if self.action == 'create':
            return ReviewCreateSerializer
        return ReviewSerializer

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        review = submit_review(
            booking_id=data['booking'],
            user_id=request.user.id,
            rating=data['rating'],
            comment=data['comment'],
        )
        return Response(ReviewSerializer(review).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def summary(self, request):  # type: ignore
        """Durchschnitt und Anzahl der Bewertungen, optional je Fahrzeug."""
        stats = self.filter_queryset(self.get_queryset()).aggregate(
            average_rating=Avg('rating'), count=Count('id')
        )
        average = stats['average_rating']
        return Response({
            'average_rating': round(average, 1) if average is not None else None,
            'count': stats['count'],
        })
