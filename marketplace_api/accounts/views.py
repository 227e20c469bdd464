import logging

from rest_framework_simplejwt import views as jwt_views, tokens
from rest_framework import generics, permissions, status
from django.db import transaction
from django.db.models import Count
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema


from projects.models import Project
from . import serializers as my_serializers
from .models import CustomUser

logger = logging.getLogger(__name__)


class CustomTokenObtainPairView(jwt_views.TokenObtainPairView):
    """Email/password login. The access token carries the email and user_type claims."""
    serializer_class = my_serializers.CustomTokenObtainPairSerializer

    @swagger_auto_schema(operation_summary="Obtain a JWT pair for a client or editor")
    def post(self, request, *args, **kwargs):
        return super().post(request, *args, **kwargs)


class RegistrationAPIView(generics.CreateAPIView):
    """
    Signs up a client (who posts jobs and pays) or an editor (who sends
    proposals and delivers). Admin accounts are created through the admin site.

    Responds with the new account and a JWT pair so the frontend can go
    straight to the job board.
    """
    serializer_class = my_serializers.RegistrationSerializer
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    @swagger_auto_schema(
        operation_summary="Register a client or editor",
        responses={
            201: my_serializers.RegistrationSerializer,
            400: "Invalid input or non-marketplace user type"
        }
    )
    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        with transaction.atomic():
            user = serializer.save()
            refresh = tokens.RefreshToken.for_user(user)

        logger.info("Registered %s account %s", user.user_type, user.pk)
        return Response(
            {
                'success': True,
                'user': serializer.data,
                'refresh': str(refresh),
                'access': str(refresh.access_token)
            },
            status=status.HTTP_201_CREATED
        )


class UserProfileRetrieveUpdateAPIView(generics.RetrieveUpdateAPIView):
    """
    The signed-in user's own profile.

    GET adds ``project_counts``: how many of the user's projects sit in each
    status, counted from the side the user is on (client or editor).
    """
    serializer_class = my_serializers.UserProfileSerializer
    permission_classes = [permissions.IsAuthenticated]

    @swagger_auto_schema(operation_summary="Retrieve own profile with project counts")
    def get(self, request, *args, **kwargs):
        return super().get(request, *args, **kwargs)

    @swagger_auto_schema(operation_summary="Partially update own profile")
    def patch(self, request, *args, **kwargs):
        return super().patch(request, *args, **kwargs)

    def retrieve(self, request, *args, **kwargs):
        user = self.get_object()
        data = dict(self.get_serializer(user).data)
        data['project_counts'] = self.project_counts(user)
        return Response(data)

    def get_object(self):
        return self.request.user

    @staticmethod
    def project_counts(user):
        side = 'editor' if user.user_type == CustomUser.EDITOR else 'client'
        rows = (
            Project.objects
            .filter(**{side: user})
            .values('status')
            .annotate(count=Count('id'))
        )
        return {row['status']: row['count'] for row in rows}
