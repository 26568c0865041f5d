"""Chat routes - registers all chat endpoints."""

from fastapi import APIRouter

from apps.chats.handlers import add_chat, close_chat, list_chats, open_chat, send_reply

router = APIRouter(prefix="/chats", tags=["Chats"])

# GET /chats - Chats of the signed-in user
router.get("")(list_chats)

# POST /chats - Add a contact by phone number
router.post("")(add_chat)

# GET /chats/{chat_id} - Open a chat and start streaming its messages
router.get("/{chat_id}")(open_chat)

# DELETE /chats/{chat_id}/open - Close the chat view
router.delete("/{chat_id}/open")(close_chat)

# POST /chats/{chat_id}/messages - Send a reply
router.post("/{chat_id}/messages")(send_reply)
