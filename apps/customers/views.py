"""
Customer views for the AquaTrack billing service.

Views are thin, all business logic is in the service layer.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import CustomerNotFoundError
from apps.core.permissions import IsAdminRole
from apps.customers.serializers import CustomerSerializer, CustomerWriteSerializer
from apps.customers.services import CustomerService

logger = logging.getLogger(__name__)


class CustomerListView(APIView):
    """
    GET  /api/customers
    POST /api/customers

    List customers or add one.
    """

    permission_classes = [IsAdminRole]

    def get(self, request):
        customers = CustomerService().list_customers()
        return Response(CustomerSerializer(customers, many=True).data)

    def post(self, request):
        serializer = CustomerWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        customer = CustomerService().create_customer(serializer.validated_data)

        return Response(
            CustomerSerializer(customer).data,
            status=status.HTTP_201_CREATED,
        )


class CustomerDetailView(APIView):
    """
    GET    /api/customers/<customer_id>
    PUT    /api/customers/<customer_id>
    DELETE /api/customers/<customer_id>

    Deleting a customer deletes all of its bills.
    """

    permission_classes = [IsAdminRole]

    def get(self, request, customer_id):
        customer = CustomerService().get_customer(customer_id)
        return Response(CustomerSerializer(customer).data)

    def put(self, request, customer_id):
        serializer = CustomerWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        customer = CustomerService().update_customer(
            customer_id, serializer.validated_data,
        )
        return Response(CustomerSerializer(customer).data)

    def delete(self, request, customer_id):
        if not CustomerService().delete_customer(customer_id):
            raise CustomerNotFoundError(
                detail=f"Customer with ID {customer_id} not found."
            )
        return Response(status=status.HTTP_204_NO_CONTENT)
