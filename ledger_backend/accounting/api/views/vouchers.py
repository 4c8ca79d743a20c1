"""
PATH: accounting/api/views/vouchers.py

VOUCHER API

Draft lifecycle:
- GET/POST       /vouchers/
- GET/PATCH      /vouchers/<id>/
- POST           /vouchers/<id>/entries/
- PATCH/DELETE   /vouchers/<id>/entries/<entry_id>/
- GET            /vouchers/<id>/validate/
- POST           /vouchers/<id>/cancel/

Ledger actions:
- POST           /vouchers/<id>/post/      (accounting.post_voucher)
- POST           /vouchers/<id>/reverse/   (accounting.reverse_voucher)

Posting retries automatically on optimistic-lock conflicts and answers
409 if the conflict persists.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.errors import forbidden, service_error_response
from accounting.api.filters import VoucherFilter
from accounting.api.serializers import (
    VoucherCancelSerializer,
    VoucherCreateSerializer,
    VoucherEntryInputSerializer,
    VoucherEntrySerializer,
    VoucherEntryUpdateSerializer,
    VoucherReverseSerializer,
    VoucherSerializer,
    VoucherUpdateSerializer,
)
from accounting.services import voucher_service
from accounting.services.exceptions import AccountingServiceError
from accounting.services.posting_service import post_voucher_with_retry, reverse_voucher


def _voucher_response(voucher_id, *, code=status.HTTP_200_OK) -> Response:
    voucher = voucher_service.get_voucher(voucher_id)
    return Response(VoucherSerializer(voucher).data, status=code)


def _posting_response(result, *, code=status.HTTP_200_OK) -> Response:
    voucher = voucher_service.get_voucher(result.voucher.pk)
    return Response(
        {
            "voucher": VoucherSerializer(voucher).data,
            "ledger_entry_ids": list(result.ledger_entry_ids),
            "already_posted": result.already_posted,
        },
        status=code,
    )


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="search", type=str, required=False, description="Number, narration or reference."),
    ],
)
class VoucherListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = VoucherSerializer
    filterset_class = VoucherFilter

    def get_queryset(self):
        return voucher_service.list_vouchers(
            search=self.request.query_params.get("search") or None
        )

    def get(self, request):
        if not request.user.has_perm("accounting.view_voucher"):
            return forbidden("You do not have permission to view vouchers.")

        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(VoucherSerializer(page, many=True).data)
        return Response(VoucherSerializer(qs, many=True).data)

    @extend_schema(request=VoucherCreateSerializer, responses={201: VoucherSerializer})
    def post(self, request):
        if not request.user.has_perm("accounting.add_voucher"):
            return forbidden("You do not have permission to create vouchers.")

        serializer = VoucherCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            voucher = voucher_service.create_draft(user=request.user, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return _voucher_response(voucher.pk, code=status.HTTP_201_CREATED)


@extend_schema(tags=["accounting"])
class VoucherDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk: int):
        if not request.user.has_perm("accounting.view_voucher"):
            return forbidden("You do not have permission to view vouchers.")
        try:
            return _voucher_response(pk)
        except AccountingServiceError as exc:
            return service_error_response(exc)

    @extend_schema(request=VoucherUpdateSerializer, responses={200: VoucherSerializer})
    def patch(self, request, pk: int):
        if not request.user.has_perm("accounting.change_voucher"):
            return forbidden("You do not have permission to change vouchers.")

        serializer = VoucherUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            voucher = voucher_service.update_draft(pk, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return _voucher_response(voucher.pk)


@extend_schema(tags=["accounting"], request=VoucherEntryInputSerializer, responses={201: VoucherEntrySerializer})
class VoucherEntryCreateView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.change_voucher"):
            return forbidden("You do not have permission to change vouchers.")

        serializer = VoucherEntryInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            entry = voucher_service.add_entry(pk, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(VoucherEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["accounting"])
class VoucherEntryDetailView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=VoucherEntryUpdateSerializer, responses={200: VoucherEntrySerializer})
    def patch(self, request, pk: int, entry_id: int):
        if not request.user.has_perm("accounting.change_voucher"):
            return forbidden("You do not have permission to change vouchers.")

        serializer = VoucherEntryUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        try:
            entry = voucher_service.update_entry(pk, entry_id, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(VoucherEntrySerializer(entry).data)

    def delete(self, request, pk: int, entry_id: int):
        if not request.user.has_perm("accounting.change_voucher"):
            return forbidden("You do not have permission to change vouchers.")
        try:
            voucher_service.remove_entry(pk, entry_id)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["accounting"], responses={200: dict})
class VoucherValidateView(APIView):
    """Dry run: every reason the voucher could not be posted right now."""

    permission_classes = [IsAuthenticated]

    def get(self, request, pk: int):
        if not request.user.has_perm("accounting.view_voucher"):
            return forbidden("You do not have permission to view vouchers.")
        try:
            voucher = voucher_service.get_voucher(pk)
            violations = voucher_service.validate_for_posting(voucher)
        except AccountingServiceError as exc:
            return service_error_response(exc)

        return Response(
            {
                "voucher_id": voucher.pk,
                "status": voucher.status,
                "postable": voucher.status == voucher.STATUS_DRAFT and not violations,
                "violations": [v.as_dict() for v in violations],
            }
        )


@extend_schema(tags=["accounting"], request=None, responses={200: dict})
class VoucherPostView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.post_voucher"):
            return forbidden("You do not have permission to post vouchers.")
        try:
            result = post_voucher_with_retry(pk, user=request.user)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return _posting_response(result)


@extend_schema(tags=["accounting"], request=VoucherCancelSerializer, responses={200: VoucherSerializer})
class VoucherCancelView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.change_voucher"):
            return forbidden("You do not have permission to cancel vouchers.")

        serializer = VoucherCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            voucher = voucher_service.cancel_voucher(
                pk, reason=serializer.validated_data["reason"], user=request.user
            )
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return _voucher_response(voucher.pk)


@extend_schema(tags=["accounting"], request=VoucherReverseSerializer, responses={201: dict})
class VoucherReverseView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request, pk: int):
        if not request.user.has_perm("accounting.reverse_voucher"):
            return forbidden("You do not have permission to reverse vouchers.")

        serializer = VoucherReverseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            result = reverse_voucher(pk, user=request.user, **serializer.validated_data)
        except AccountingServiceError as exc:
            return service_error_response(exc)
        return _posting_response(result, code=status.HTTP_201_CREATED)
