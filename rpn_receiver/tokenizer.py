import math
import re

from node import Node, NodeKind, operator_symbols

# 数字字面量：整数或小数，可带指数部分；符号总是作为运算符处理
LITERAL_PATTERN = re.compile(r'(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?', re.ASCII)

paren_kinds: dict[str, NodeKind] = {
    '(': NodeKind.LPAREN,
    ')': NodeKind.RPAREN,
}


def encode_next(node: Node, source: str, cursor: int) -> int:
    """
    从 cursor 处识别一个最长的标记并写入 node，返回新的读取位置

    无法识别时节点保持 UNKNOWN，返回的位置与 cursor 相同，由调用方判定为非法字符

    Args:
        node: 待写入的节点
        source: 表达式字符串
        cursor: 当前读取位置

    Returns:
        int: 标记之后的位置
    """
    node.reset()
    if cursor >= len(source):
        return cursor

    char = source[cursor]
    if char in paren_kinds:
        node.encode_paren(paren_kinds[char])
        return cursor + 1
    if char in operator_symbols:
        node.encode_operator(operator_symbols[char])
        return cursor + 1

    # 其他情况尝试解析数字
    match = LITERAL_PATTERN.match(source, cursor)
    if match is None:
        return cursor
    value = float(match.group())
    # 超出浮点数范围的字面量视为无法识别
    if math.isinf(value):
        return cursor
    node.encode_literal(value)
    return match.end()
