"""HTTP client for the chat API, used by the Streamlit page."""
import base64
from typing import Any, Dict, List, Optional

import requests

from streamlit_ui.settings import UiSettings


def image_to_data_url(data: bytes, mime_type: str) -> str:
    """Embed raw image bytes as a base64 ``data:`` URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


class ChatClient:
    def __init__(
        self,
        settings: Optional[UiSettings] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings or UiSettings()
        self.session = session or requests.Session()
        self.timeout = self.settings.REQUEST_TIMEOUT

    def _url(self, path: str) -> str:
        return f"{self.settings.API_BASE_URL.rstrip('/')}{path}"

    def _conversation_url(self, conversation_id: Optional[str] = None) -> str:
        path = self.settings.ENDPOINT_CONVERSATIONS
        if conversation_id:
            path = f"{path}/{conversation_id}"
        return self._url(path)

    def send_message(
        self,
        message: str,
        conversation_id: Optional[str] = None,
        image_data: Optional[str] = None,
        file_name: Optional[str] = None,
    ) -> requests.Response:
        """Start a turn and return the open streaming response.

        The caller iterates ``response.iter_lines()`` and closes the response.
        """
        payload: Dict[str, Any] = {
            "message": message,
            "type": "image" if image_data else "text",
        }
        if conversation_id:
            payload["conversationId"] = conversation_id
        if image_data:
            payload["imageData"] = image_data
            if file_name:
                payload["fileName"] = file_name

        resp = self.session.post(
            self._url(self.settings.ENDPOINT_CHAT),
            json=payload,
            stream=True,
            timeout=self.timeout,
        )
        try:
            resp.raise_for_status()
        except requests.HTTPError:
            resp.close()
            raise
        return resp

    def get_conversations(self) -> List[Dict[str, Any]]:
        resp = self.session.get(self._conversation_url(), timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def get_conversation(self, conversation_id: str) -> Dict[str, Any]:
        resp = self.session.get(
            self._conversation_url(conversation_id), timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def create_conversation(self, title: Optional[str] = None) -> Dict[str, Any]:
        body = {"title": title} if title else {}
        resp = self.session.post(
            self._conversation_url(), json=body, timeout=self.timeout
        )
        resp.raise_for_status()
        return resp.json()

    def update_conversation_title(
        self, conversation_id: str, title: str
    ) -> Dict[str, Any]:
        resp = self.session.patch(
            self._conversation_url(conversation_id),
            json={"title": title},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json()

    def delete_conversation(self, conversation_id: str) -> bool:
        resp = self.session.delete(
            self._conversation_url(conversation_id), timeout=self.timeout
        )
        resp.raise_for_status()
        return bool(resp.json().get("success"))
