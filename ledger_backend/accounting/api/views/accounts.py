"""
PATH: accounting/api/views/accounts.py

ACCOUNT DIRECTORY API

Endpoints:
- GET/POST          /accounts/
- GET/PATCH/DELETE  /accounts/<id>/
- POST              /accounts/<id>/deactivate/
- POST              /accounts/<id>/reactivate/
- GET               /accounts/<id>/balance/
- GET               /accounts/<id>/statement/?start_date=&end_date=

Permission gates use Django model permissions (no role hardcoding).
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import forbidden, service_error_response
from accounting.api.params import parse_query_date
from accounting.api.serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
)
from accounting.services import account_service
from accounting.services.exceptions import AccountingServiceError
from accounting.services.ledger_report_service import account_statement


def _parse_bool(raw):
    if raw is None or str(raw).strip() == "":
        return None
    value = str(raw).strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    raise ValueError(raw)


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="account_type", type=str, required=False),
        OpenApiParameter(name="is_active", type=bool, required=False),
        OpenApiParameter(name="is_group", type=bool, required=False),
        OpenApiParameter(name="search", type=str, required=False, description="Code or name fragment."),
    ],
)
class AccountListCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm("accounting.view_account"):
            return forbidden("You do not have permission to view accounts.")

        qp = request.query_params
        try:
            is_active = _parse_bool(qp.get("is_active"))
            is_group = _parse_bool(qp.get("is_group"))
        except ValueError:
            return Response(
                {"detail": "is_active / is_group must be true or false"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        accounts = account_service.list_accounts(
            account_type=qp.get("account_type") or None,
            is_active=is_active,
            is_group=is_group,
            search=qp.get("search") or None,
        )
        return Response(AccountSerializer(accounts, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(request=AccountCreateSerializer, responses={201: AccountSerializer})
    def post(self, request):
        if not request.user.has_perm("accounting.add_account"):
            return forbidden("You do not have permission to create accounts.")

        serializer = AccountCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            account = account_service.create_account(**serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(AccountSerializer(account).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["accounting"])
class AccountDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk: int):
        if not request.user.has_perm("accounting.view_account"):
            return forbidden("You do not have permission to view accounts.")
        try:
            account = account_service.get_account(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(AccountSerializer(account).data)

    @extend_schema(request=AccountUpdateSerializer, responses={200: AccountSerializer})
    def patch(self, request, pk: int):
        if not request.user.has_perm("accounting.change_account"):
            return forbidden("You do not have permission to change accounts.")

        serializer = AccountUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            account = account_service.update_account(pk, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(AccountSerializer(account).data)

    def delete(self, request, pk: int):
        if not request.user.has_perm("accounting.delete_account"):
            return forbidden("You do not have permission to delete accounts.")
        try:
            account_service.delete_account(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["accounting"], request=None, responses={200: AccountSerializer})
class AccountDeactivateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.change_account"):
            return forbidden("You do not have permission to change accounts.")
        try:
            account = account_service.deactivate_account(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(AccountSerializer(account).data)


@extend_schema(tags=["accounting"], request=None, responses={200: AccountSerializer})
class AccountReactivateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.change_account"):
            return forbidden("You do not have permission to change accounts.")
        try:
            account = account_service.reactivate_account(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(AccountSerializer(account).data)


@extend_schema(tags=["accounting"], responses={200: dict})
class AccountBalanceView(APIView):
    """Cached balance for leaves, computed roll-up for groups."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk: int):
        if not request.user.has_perm("accounting.view_account"):
            return forbidden("You do not have permission to view accounts.")
        try:
            account = account_service.get_account(pk)
            balance = account_service.effective_balance(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "account_id": account.id,
                "code": account.code,
                "is_group": account.is_group,
                "normal_balance": account.normal_balance,
                "balance": str(balance),
                "currency_code": account.currency_code,
            }
        )


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="start_date", type=str, required=False, description="YYYY-MM-DD"),
        OpenApiParameter(name="end_date", type=str, required=False, description="YYYY-MM-DD"),
    ],
    responses={200: dict},
)
class AccountStatementView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk: int):
        if not request.user.has_perm("accounting.view_ledgerentry"):
            return forbidden("You do not have permission to view account statements.")

        dates = {}
        for name in ("start_date", "end_date"):
            raw = (request.query_params.get(name) or "").strip()
            if not raw:
                dates[name] = None
                continue
            parsed = parse_query_date(raw)
            if parsed is None:
                return Response(
                    {"detail": f"Invalid {name} (expected YYYY-MM-DD)"},
                    status=status.HTTP_400_BAD_REQUEST,
                )
            dates[name] = parsed

        try:
            statement = account_statement(pk, **dates)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(statement.as_dict())
