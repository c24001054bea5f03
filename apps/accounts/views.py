"""
Account views for the AquaTrack billing service.

Views are thin, all business logic is in the service layer.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.accounts.serializers import (
    AdminCreateSerializer,
    LoginSerializer,
    ProfileSerializer,
    ProfileUpdateSerializer,
    SignupSerializer,
    UserSerializer,
)
from apps.accounts.services import AccountService, describe_user
from apps.core.exceptions import UserNotFoundError
from apps.core.permissions import IsAdminRole

logger = logging.getLogger(__name__)


class SignupView(APIView):
    """
    POST /api/signup

    Register a customer login together with its customer record.
    """

    def post(self, request):
        serializer = SignupSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user, _ = AccountService.signup(serializer.validated_data)

        return Response(
            UserSerializer(describe_user(user)).data,
            status=status.HTTP_201_CREATED,
        )


class LoginView(APIView):
    """
    POST /api/login

    Check credentials and return the user with its role.
    """

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = AccountService.login(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
        )
        return Response(UserSerializer(describe_user(user)).data)


class ProfileView(APIView):
    """
    GET /api/profile/<user_id>
    PUT /api/profile/<user_id>
    """

    def get(self, request, user_id):
        profile = AccountService.get_profile(user_id)
        return Response(ProfileSerializer(profile).data)

    def put(self, request, user_id):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = AccountService.update_profile(
            user_id,
            name=serializer.validated_data['name'],
            phone=serializer.validated_data['phone'],
        )
        return Response(ProfileSerializer(profile).data)


class AdminListView(APIView):
    """
    GET  /api/admins
    POST /api/admins
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        admins = [describe_user(user) for user in AccountService.list_admins()]
        return Response(UserSerializer(admins, many=True).data)

    def post(self, request):
        serializer = AdminCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        admin = AccountService.add_admin(
            serializer.validated_data['name'],
            serializer.validated_data['email'],
        )
        return Response(
            UserSerializer(describe_user(admin)).data,
            status=status.HTTP_201_CREATED,
        )


class AdminDetailView(APIView):
    """
    DELETE /api/admins/<user_id>
    """

    permission_classes = [IsAdminRole]

    def delete(self, request, user_id):
        if not AccountService.remove_admin(user_id):
            raise UserNotFoundError(
                detail=f"Administrator with ID {user_id} not found."
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
