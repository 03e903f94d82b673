import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("listings", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Conversation",
            fields=[
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this record was created")),
                ("updated_at", models.DateTimeField(auto_now=True, help_text="Timestamp when this record was last modified")),
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, help_text="Unique identifier for this record", primary_key=True, serialize=False)),
                ("last_message_at", models.DateTimeField(blank=True, db_index=True, help_text="Timestamp of most recent message (for sorting conversation lists)", null=True)),
                ("listing", models.ForeignKey(help_text="Listing this conversation is about", on_delete=django.db.models.deletion.PROTECT, related_name="conversations", to="listings.listing")),
                ("owner", models.ForeignKey(help_text="Owner of the listing", on_delete=django.db.models.deletion.PROTECT, related_name="conversations_as_owner", to=settings.AUTH_USER_MODEL)),
                ("renter", models.ForeignKey(help_text="User who initiated contact about the listing", on_delete=django.db.models.deletion.PROTECT, related_name="conversations_as_renter", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_conversation",
                "ordering": ["-last_message_at", "-created_at"],
                "indexes": [
                    models.Index(fields=["renter", "-last_message_at"], name="chat_conv_renter_activity_idx"),
                    models.Index(fields=["owner", "-last_message_at"], name="chat_conv_owner_activity_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("listing", "renter", "owner"), name="unique_listing_conversation"),
                    models.CheckConstraint(condition=~models.Q(("renter", models.F("owner"))), name="conversation_distinct_participants"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Message",
            fields=[
                ("id", models.BigAutoField(primary_key=True, serialize=False)),
                ("body", models.TextField(help_text="Message text (trimmed, never empty)")),
                ("is_read", models.BooleanField(default=False, help_text="Whether the recipient has read this message")),
                ("read_at", models.DateTimeField(blank=True, help_text="When the recipient read this message", null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True, db_index=True, help_text="Timestamp when this message was sent")),
                ("conversation", models.ForeignKey(help_text="Conversation this message belongs to", on_delete=django.db.models.deletion.CASCADE, related_name="messages", to="chat.conversation")),
                ("recipient", models.ForeignKey(help_text="User this message is addressed to", on_delete=django.db.models.deletion.PROTECT, related_name="received_messages", to=settings.AUTH_USER_MODEL)),
                ("sender", models.ForeignKey(help_text="User who sent this message", on_delete=django.db.models.deletion.PROTECT, related_name="sent_messages", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(fields=["conversation", "created_at", "id"], name="chat_msg_conv_order_idx"),
                    models.Index(condition=models.Q(("is_read", False)), fields=["recipient", "conversation"], name="chat_msg_unread_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=~models.Q(("sender", models.F("recipient"))), name="message_distinct_sender_recipient"),
                ],
            },
        ),
    ]
