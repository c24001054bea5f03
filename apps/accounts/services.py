"""
Account service layer.

Sign-up, login, customer profiles and administrator management on top of
django.contrib.auth. A customer-role user is linked to exactly one Customer.
"""

import logging

from django.contrib.auth import authenticate, get_user_model
from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import (
    DuplicateAccountError,
    InvalidCredentialsError,
    LedgerValidationError,
    UserNotFoundError,
)
from apps.core.middleware import ROLE_ADMIN, ROLE_CUSTOMER
from apps.customers.models import Customer
from apps.customers.services import CustomerService

logger = logging.getLogger(__name__)

User = get_user_model()


def role_for(user) -> str:
    return ROLE_ADMIN if user.is_staff else ROLE_CUSTOMER


def describe_user(user) -> dict:
    """Public view of a user account."""
    customer = Customer.objects.filter(user=user).first()
    return {
        'id': user.pk,
        'name': user.first_name,
        'email': user.email,
        'role': role_for(user),
        'account_number': customer.account_number if customer else None,
    }


class AccountService:
    """Service class for user accounts."""

    @staticmethod
    @transaction.atomic
    def signup(validated_data: dict):
        """
        Register a customer login and its Customer record.

        The customer gets the next free AT-NNN account number, a random free
        MT-NNN meter number and a starting reading of 0.

        Returns:
            Tuple of (user, customer).

        Raises:
            LedgerValidationError: If the passwords differ.
            DuplicateAccountError: If the email is already registered.
        """
        if validated_data['password'] != validated_data['password_confirm']:
            raise LedgerValidationError(detail='Passwords do not match.')

        email = validated_data['email'].strip().lower()
        if User.objects.filter(username__iexact=email).exists():
            raise DuplicateAccountError(
                detail='An account with this email already exists.'
            )

        user = User.objects.create_user(
            username=email,
            email=email,
            password=validated_data['password'],
            first_name=validated_data['name'],
        )

        customers = CustomerService()
        customer = customers.create_customer({
            'name': validated_data['name'],
            'account_number': customers.next_account_number(),
            'meter_number': customers.next_meter_number(),
            'phone': validated_data['phone'],
            'last_reading': 0,
            'last_reading_date': timezone.localdate(),
            'user': user,
        })

        logger.info(
            "Signed up %s as customer %s (account %s)",
            email,
            customer.pk,
            customer.account_number,
        )
        return user, customer

    @staticmethod
    def login(email: str, password: str):
        """
        Check credentials.

        Raises:
            InvalidCredentialsError: If the email or password is wrong.
        """
        user = authenticate(username=email.strip().lower(), password=password)
        if user is None:
            logger.info("Failed login for %s", email)
            raise InvalidCredentialsError()
        return user

    @staticmethod
    def get_profile(user_id) -> dict:
        """
        Profile of a customer-role user.

        Raises:
            UserNotFoundError: If the user or its customer record is missing.
        """
        customer = Customer.objects.select_related('user').filter(user_id=user_id).first()
        if customer is None:
            raise UserNotFoundError(
                detail=f"No customer profile for user ID {user_id}."
            )
        return AccountService._profile(customer.user, customer)

    @staticmethod
    @transaction.atomic
    def update_profile(user_id, name: str, phone: str) -> dict:
        """
        Change the name and phone on both the user and its customer record.

        Raises:
            UserNotFoundError: If the user or its customer record is missing.
        """
        customer = Customer.objects.select_related('user').filter(user_id=user_id).first()
        if customer is None:
            raise UserNotFoundError(
                detail=f"No customer profile for user ID {user_id}."
            )

        user = customer.user
        user.first_name = name
        user.save(update_fields=['first_name'])

        customer = CustomerService().update_customer(
            customer.pk, {'name': name, 'phone': phone},
        )
        logger.info("Profile updated for user %s", user_id)
        return AccountService._profile(user, customer)

    @staticmethod
    def list_admins():
        return list(User.objects.filter(is_staff=True).order_by('date_joined', 'pk'))

    @staticmethod
    def add_admin(name: str, email: str):
        """
        Create an administrator without a usable password.

        Raises:
            DuplicateAccountError: If the email is already registered.
        """
        email = email.strip().lower()
        if User.objects.filter(username__iexact=email).exists():
            raise DuplicateAccountError(
                detail='An admin with this email already exists.'
            )
        admin = User.objects.create_user(
            username=email,
            email=email,
            password=None,
            first_name=name,
            is_staff=True,
        )
        logger.info("Added administrator %s (ID: %d)", email, admin.pk)
        return admin

    @staticmethod
    def remove_admin(user_id) -> bool:
        deleted, _ = User.objects.filter(pk=user_id, is_staff=True).delete()
        if deleted:
            logger.info("Removed administrator %s", user_id)
        return deleted > 0

    @staticmethod
    def _profile(user, customer) -> dict:
        return {
            'id': user.pk,
            'name': customer.name,
            'email': user.email,
            'phone': customer.phone,
            'account_number': customer.account_number,
            'meter_number': customer.meter_number,
        }
