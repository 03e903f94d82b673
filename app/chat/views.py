"""
Views for chat API.

This module provides REST API endpoints for listing conversations:
- ConversationViewSet: Conversation list, get-or-create, detail and actions
- MessageReadView: Mark a single message as read
- ActivityView: Dashboard counters

URL Structure:
    /api/v1/chat/conversations/                 GET (?search=), POST
    /api/v1/chat/conversations/{id}/            GET
    /api/v1/chat/conversations/{id}/read/       POST
    /api/v1/chat/conversations/{id}/messages/   GET, POST
    /api/v1/chat/messages/{id}/read/            POST
    /api/v1/chat/activity/                      GET

Design Decisions:
    - Querysets only ever contain the caller's conversations, so other
      users' conversations are 404 rather than 403
    - All writes go through the service layer
    - Service failures are rendered with the HTTP status of the mapped
      core exception ({"error", "error_code"} body)
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import (
    OpenApiParameter,
    OpenApiResponse,
    extend_schema,
    extend_schema_view,
)
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from chat.exceptions import exception_for_result
from chat.models import Conversation, Message
from chat.permissions import IsConversationParticipant, IsMessageRecipient
from chat.serializers import (
    ActivitySerializer,
    ConversationCreateSerializer,
    ConversationSerializer,
    ConversationSummarySerializer,
    MessageCreateSerializer,
    MessageSerializer,
)
from chat.services import (
    ConversationListService,
    ConversationService,
    MessageService,
    ReadStateService,
)
from core.services import ServiceResult


def failure_response(result: ServiceResult) -> Response:
    """Render a failed ServiceResult with its mapped HTTP status."""
    exc = exception_for_result(result)
    return Response(
        {"error": exc.message, "error_code": exc.error_code},
        status=exc.http_status,
    )


@extend_schema_view(
    list=extend_schema(
        operation_id="list_conversations",
        summary="List conversations",
        parameters=[
            OpenApiParameter(
                "search",
                OpenApiTypes.STR,
                description="Case-insensitive filter on counterpart name or listing title",
            )
        ],
        responses=ConversationSummarySerializer(many=True),
        tags=["Chat - Conversations"],
    ),
    create=extend_schema(
        operation_id="open_conversation",
        summary="Get or create the conversation about a listing",
        request=ConversationCreateSerializer,
        responses={
            200: ConversationSerializer,
            201: ConversationSerializer,
            404: OpenApiResponse(description="Listing not found"),
        },
        tags=["Chat - Conversations"],
    ),
    retrieve=extend_schema(
        operation_id="get_conversation",
        summary="Get conversation",
        tags=["Chat - Conversations"],
    ),
)
class ConversationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """
    ViewSet for conversation operations.

    list:
        Summaries of the caller's conversations, most recently active
        first, with counterpart name, listing title and unread count.

    create:
        Contact a listing's owner. Returns the existing conversation (200)
        or a new one (201); the caller is the renter.

    retrieve:
        Conversation details.

    read:
        Mark every message addressed to the caller as read.

    messages:
        GET the full ordered history, POST a new message to the counterpart.
    """

    permission_classes = [IsAuthenticated, IsConversationParticipant]
    serializer_class = ConversationSerializer

    def get_queryset(self):
        """Filter to conversations where user is a participant."""
        if not self.request.user.is_authenticated:
            return Conversation.objects.none()
        return (
            Conversation.objects.for_user(self.request.user.id)
            .select_related("listing")
            .by_activity()
        )

    def get_serializer_class(self):
        if self.action == "create":
            return ConversationCreateSerializer
        if self.action == "messages":
            return (
                MessageCreateSerializer if self.request.method == "POST" else MessageSerializer
            )
        return ConversationSerializer

    def list(self, request):
        summaries = ConversationListService.list_for_user(
            request.user.id,
            search=request.query_params.get("search"),
        )
        return Response(ConversationSummarySerializer(summaries, many=True).data)

    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ConversationService.open_for_listing(
            serializer.validated_data["listing_id"],
            request.user.id,
        )
        if not result.success:
            return failure_response(result)

        output = ConversationSerializer(result.data, context={"request": request})
        created = result.meta.get("created", False)
        return Response(
            output.data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(
        operation_id="mark_conversation_read",
        summary="Mark conversation as read",
        request=None,
        responses={200: OpenApiResponse(description='{"marked_read": <count>}')},
        tags=["Chat - Conversations"],
    )
    @action(detail=True, methods=["post"])
    def read(self, request, pk=None):
        conversation = self.get_object()

        result = ReadStateService.mark_all_read_for_user(conversation.pk, request.user.id)
        if not result.success:
            return failure_response(result)
        return Response({"marked_read": result.data})

    @extend_schema(
        methods=["GET"],
        operation_id="list_messages",
        summary="Conversation history",
        responses=MessageSerializer(many=True),
        tags=["Chat - Messages"],
    )
    @extend_schema(
        methods=["POST"],
        operation_id="send_message",
        summary="Send message",
        request=MessageCreateSerializer,
        responses={201: MessageSerializer},
        tags=["Chat - Messages"],
    )
    @action(detail=True, methods=["get", "post"])
    def messages(self, request, pk=None):
        conversation = self.get_object()

        if request.method == "GET":
            history = MessageService.fetch_history(conversation.pk).data
            return Response(MessageSerializer(history, many=True).data)

        serializer = MessageCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageService.send_message(
            conversation.pk,
            sender_id=request.user.id,
            recipient_id=conversation.counterpart_id(request.user.id),
            body=serializer.validated_data["body"],
        )
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class MessageReadView(APIView):
    """
    Mark one message as read.

    Only the message's recipient may do this; repeated calls are harmless.
    """

    permission_classes = [IsAuthenticated, IsMessageRecipient]

    @extend_schema(
        operation_id="mark_message_read",
        summary="Mark message as read",
        request=None,
        responses={
            200: OpenApiResponse(description='{"id": <id>, "updated": <bool>}'),
            403: OpenApiResponse(description="Caller is not the recipient"),
            404: OpenApiResponse(description="Message not found"),
        },
        tags=["Chat - Messages"],
    )
    def post(self, request, pk):
        message = get_object_or_404(
            Message.objects.filter(conversation__in=Conversation.objects.for_user(request.user.id)),
            pk=pk,
        )
        self.check_object_permissions(request, message)

        result = ReadStateService.mark_message_read(message.pk)
        if not result.success:
            return failure_response(result)
        return Response({"id": message.pk, "updated": result.data})


class ActivityView(APIView):
    """Dashboard counters: unread messages and recently active conversations."""

    permission_classes = [IsAuthenticated]

    @extend_schema(
        operation_id="get_chat_activity",
        summary="Messaging activity",
        responses=ActivitySerializer,
        tags=["Chat - Conversations"],
    )
    def get(self, request):
        summary = ConversationListService.activity_for_user(request.user.id)
        return Response(ActivitySerializer(summary).data)
