import sys
from pathlib import Path
from typing import Any, Dict, Optional

import requests
import streamlit as st
from requests.exceptions import RequestException

try:
    from streamlit_ui.client import ChatClient, image_to_data_url
except ModuleNotFoundError:
    ROOT = Path(__file__).resolve().parents[1]
    if str(ROOT) not in sys.path:
        sys.path.insert(0, str(ROOT))
    from streamlit_ui.client import ChatClient, image_to_data_url

from streamlit_ui.stream_consumer import process_stream


st.set_page_config(page_title="LLM Chat", layout="centered")
st.title("Chat")

if "client" not in st.session_state:
    st.session_state.client = ChatClient()
if "conversation_id" not in st.session_state:
    st.session_state.conversation_id = None
if "messages" not in st.session_state:
    st.session_state.messages = []

client: ChatClient = st.session_state.client


def load_conversation(conversation_id: Optional[str]):
    """Select a conversation and load its message history."""
    st.session_state.conversation_id = conversation_id
    st.session_state.messages = []
    if not conversation_id:
        return
    try:
        conversation = client.get_conversation(conversation_id)
    except RequestException as e:
        st.error(f"Failed to load conversation: {e}")
        return
    st.session_state.messages = conversation.get("messages", [])


def render_message(msg: Dict[str, Any]):
    with st.chat_message(msg.get("role", "assistant")):
        if msg.get("type") == "image":
            metadata = msg.get("metadata") or {}
            caption = metadata.get("originalText")
            if caption:
                st.markdown(caption)
            st.image(msg.get("content", ""), caption=metadata.get("fileName"))
        else:
            st.markdown(msg.get("content", ""))


# Sidebar: conversation list
with st.sidebar:
    st.subheader("Conversations")
    if st.button("New Chat", use_container_width=True):
        load_conversation(None)
        st.rerun()

    try:
        conversations = client.get_conversations()
    except RequestException as e:
        st.error(f"Failed to list conversations: {e}")
        conversations = []

    for conv in conversations:
        label = conv.get("title") or "New Conversation"
        if conv["id"] == st.session_state.conversation_id:
            label = f"**{label}**"
        if st.button(label, key=f"select-{conv['id']}", use_container_width=True):
            load_conversation(conv["id"])
            st.rerun()

    if st.session_state.conversation_id:
        st.divider()
        new_title = st.text_input("Rename conversation", key="rename-title")
        col_rename, col_delete = st.columns(2)
        if col_rename.button("Rename") and new_title.strip():
            try:
                client.update_conversation_title(
                    st.session_state.conversation_id, new_title.strip()
                )
                st.rerun()
            except RequestException as e:
                st.error(f"Failed to rename conversation: {e}")
        if col_delete.button("Delete"):
            try:
                client.delete_conversation(st.session_state.conversation_id)
                load_conversation(None)
                st.rerun()
            except RequestException as e:
                st.error(f"Failed to delete conversation: {e}")

# Display chat history
for msg in st.session_state.messages:
    render_message(msg)

uploaded = st.file_uploader(
    "Attach an image", type=["png", "jpg", "jpeg", "gif", "webp"]
)

# User input
if prompt := st.chat_input("Type your message..."):
    image_data = None
    file_name = None
    if uploaded is not None:
        image_data = image_to_data_url(uploaded.getvalue(), uploaded.type)
        file_name = uploaded.name

    user_msg: Dict[str, Any] = {"role": "user", "type": "text", "content": prompt}
    if image_data:
        user_msg = {
            "role": "user",
            "type": "image",
            "content": image_data,
            "metadata": {"originalText": prompt, "fileName": file_name},
        }
    st.session_state.messages.append(user_msg)
    render_message(user_msg)

    with st.chat_message("assistant"):
        placeholder = st.empty()
        state: Dict[str, Any] = {"text": "", "error": None}

        def on_chunk(content: str):
            state["text"] += content
            placeholder.markdown(state["text"] + "▌")

        def on_done(frame: Dict[str, Any]):
            st.session_state.conversation_id = frame.get("conversationId")
            placeholder.markdown(state["text"])

        def on_error(message: str):
            state["error"] = message

        try:
            resp = client.send_message(
                prompt,
                conversation_id=st.session_state.conversation_id,
                image_data=image_data,
                file_name=file_name,
            )
        except requests.HTTPError as e:
            detail = e.response.status_code if e.response is not None else ""
            on_error(f"API error {detail}")
        except RequestException as e:
            on_error(f"Failed to reach API: {e}")
        else:
            with resp:
                process_stream(
                    resp.iter_lines(decode_unicode=True), on_chunk, on_done, on_error
                )

        if state["error"]:
            placeholder.empty()
            st.error(state["error"])
        else:
            st.session_state.messages.append(
                {"role": "assistant", "type": "text", "content": state["text"]}
            )
