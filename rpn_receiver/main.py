import asyncio
import json
import logging
import re
from typing import List, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from arena import create_arena, destroy_arena
from config import ARENA_CAPACITY, WS_URI, setup_logging
from expression import ExpressionError, describe_error, parse, postfix_text, tokenize
from message import TextMessage, send_message, GroupTextMessage, UserTextMessage
from node import format_node

HELP_TEXT = "支持的指令: \n.help\n.info\n.rpn 表达式\n.tokens 表达式"


def _arena_capacity(expression: str) -> int:
    # 未配置容量时按表达式长度分配，保证每个字符至多对应一个节点
    return ARENA_CAPACITY if ARENA_CAPACITY else len(expression)


def convert_expression_message(expression: str) -> str:
    """
    转换表达式并生成回复文本
    """
    if len(expression) == 0:
        return "表达式不能为空"
    arena = create_arena(_arena_capacity(expression))
    try:
        postfix = parse(expression, [arena])
        return f"{expression} => {postfix_text(postfix)}"
    except ExpressionError as e:
        return f"表达式错误: {describe_error(expression, e)}"
    finally:
        destroy_arena(arena)


def list_tokens_message(expression: str) -> str:
    """
    列出表达式中的所有标记
    """
    if len(expression) == 0:
        return "表达式不能为空"
    arena = create_arena(_arena_capacity(expression))
    try:
        tokens = tokenize(expression, [arena])
        return "\n".join(format_node(ref.node) for ref in tokens)
    except ExpressionError as e:
        return f"表达式错误: {describe_error(expression, e)}"
    finally:
        destroy_arena(arena)


def command_argument(command: str, name: str) -> Optional[str]:
    """
    指令以 name 开头且其后为空白或结尾时返回其后的参数，否则返回 None
    """
    match = re.match(rf"{re.escape(name)}(?:\s+(.*)|$)", command, re.IGNORECASE | re.DOTALL)
    if match is None:
        return None
    return (match.group(1) or "").strip()


def execute_command(command: str, sender_id: int, sender_nickname: str, group_id: Optional[int] = None) -> TextMessage:
    # 记录执行的命令
    logging.info(f"用户 {sender_nickname}({sender_id}) 执行命令: {command}")

    def to_text_message(message: str) -> TextMessage:
        if group_id is not None:
            return GroupTextMessage(group_id, message)
        else:
            return UserTextMessage(sender_id, message)

    lower_command = command.lower()
    if lower_command == "info":
        return to_text_message("中缀表达式转后缀表达式（逆波兰表示法）bot\n支持 + - * / ^ 与括号")

    if lower_command == "help":
        return to_text_message(HELP_TEXT)

    # 表达式中的空格在转换前去掉
    expression = command_argument(command, "rpn")
    if expression is not None:
        return to_text_message(convert_expression_message(expression.replace(" ", "")))

    expression = command_argument(command, "tokens")
    if expression is not None:
        return to_text_message(list_tokens_message(expression.replace(" ", "")))

    # 未知指令
    return to_text_message(f"未知指令: {command}\n支持的指令请执行.help")


def collect_replies(message_dict: dict) -> List[TextMessage]:
    """
    从一条收到的消息中解析所有指令并生成回复

    消息中 @ 了其他人（而不是自己或全体）时不回复
    """
    if "self_id" not in message_dict:
        return []

    self_id: int = message_dict["self_id"]
    group_id: Optional[int] = message_dict.get("group_id")

    if "sender" not in message_dict or "message" not in message_dict:
        return []

    sender = message_dict["sender"]
    if not isinstance(sender, dict) or "user_id" not in sender or "nickname" not in sender:
        return []

    sender_id: int = sender["user_id"]
    if self_id == sender_id:
        return []

    sender_nickname = sender["nickname"]
    messages = message_dict["message"]
    if not isinstance(messages, list):
        return []

    has_at = False
    at_self = False
    message_results: List[TextMessage] = []

    for message in messages:
        if not isinstance(message, dict) or "type" not in message:
            continue
        message_type = message["type"]

        # 处理文本消息
        if message_type == "text":
            if "data" not in message:
                continue
            message_data = message["data"]
            if not isinstance(message_data, dict) or not isinstance(message_data.get("text"), str):
                continue

            stripped_message = message_data["text"].strip()
            if not stripped_message.startswith(('.', '。')) or len(stripped_message) == 1:
                continue
            for single_command in stripped_message.split('\n'):
                single_command = single_command.strip()
                # 检查每行是否以 . 或 。 开头
                if single_command.startswith(('.', '。')):
                    actual_command = single_command[1:].strip()
                    if len(actual_command) > 0:  # 忽略空行
                        message_results.append(
                            execute_command(actual_command, sender_id, sender_nickname, group_id)
                        )

        elif message_type == "at":
            has_at = True
            if "data" not in message:
                continue
            message_data = message["data"]
            if isinstance(message_data, dict) and "qq" in message_data:
                at_qq = str(message_data["qq"])
                if at_qq == str(self_id) or at_qq == "all":
                    at_self = True

    if has_at and not at_self:
        return []
    return message_results


async def receive_messages(ws):
    while True:
        try:
            message = await ws.recv()
            message_dict = json.loads(message)
            if not isinstance(message_dict, dict):
                continue

            replies = collect_replies(message_dict)
            if replies:
                logging.info(f"收到消息: {message_dict}")
            for result in replies:
                await send_message(ws, result)

        except ConnectionClosed:
            logging.info("WebSocket 连接已关闭")
            break
        except json.JSONDecodeError:
            logging.error("接收到无效的 JSON 数据")
        except Exception as e:
            # 单条消息处理失败不影响后续消息
            logging.error(f"处理消息时发生未知错误: {e}")


async def main(uri: str = WS_URI):
    setup_logging()

    try:
        async with websockets.connect(uri) as websocket:
            logging.info(f"已连接到WebSocket服务器: {uri}")
            await receive_messages(websocket)
    except (OSError, WebSocketException) as e:
        logging.error(f"WebSocket连接失败: {e}")


if __name__ == "__main__":
    asyncio.run(main())
