import json
import uuid
from typing import Optional


class TextMessage:
    text: str


class UserTextMessage(TextMessage):
    user_id: int

    def __init__(self, user_id: int, text: str) -> None:
        self.user_id = user_id
        self.text = text


class GroupTextMessage(TextMessage):
    group_id: int

    def __init__(self, group_id: int, text: str) -> None:
        self.group_id = group_id
        self.text = text


def to_payload(message: TextMessage, echo: Optional[str] = None) -> dict:
    """
    将文本消息转换为发送用的请求体
    """
    if echo is None:
        echo = str(uuid.uuid4())
    segment = {
        "type": "text",
        "data": {
            "text": message.text
        }
    }
    if isinstance(message, UserTextMessage):
        return {
            "action": "send_private_msg",
            "params": {
                "user_id": message.user_id,
                "message": segment
            },
            'echo': echo
        }
    elif isinstance(message, GroupTextMessage):
        return {
            "action": "send_group_msg",
            "params": {
                "group_id": message.group_id,
                "message": segment
            },
            'echo': echo
        }
    raise TypeError(f"不支持的消息类型: {type(message).__name__}")


async def send_message(websocket, message: TextMessage):
    await websocket.send(json.dumps(to_payload(message), ensure_ascii=False))
