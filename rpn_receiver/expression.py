import logging
from enum import Enum
from typing import Optional, Sequence, Union

from arena import ArenaChain, NodeArena, NodeRef, create_arena
from node import NodeKind, Precedence, compare, format_node, node_symbol
from stack import Stack
from token_buffer import TokenBuffer
from tokenizer import encode_next


class ExprStatus(Enum):
    """
    表达式处理的状态码
    """
    OK = "ok"
    NO_NODE = "no_node"
    BAD_SYMBOL = "bad_symbol"
    NO_EXPR = "no_expr"
    MISMATCHED_PAREN = "mismatched_paren"
    INTERNAL_ERROR = "internal_error"


status_messages: dict[ExprStatus, str] = {
    ExprStatus.OK: "Expression OK",
    ExprStatus.NO_NODE: "Insufficient nodes",
    ExprStatus.BAD_SYMBOL: "Unexpected symbol",
    ExprStatus.NO_EXPR: "Insufficient expression capacity",
    ExprStatus.MISMATCHED_PAREN: "Mismatched parenthesis",
    ExprStatus.INTERNAL_ERROR: "Internal error; please report!",
}


def status_str(status: ExprStatus) -> str:
    return status_messages.get(status, "Unknown expression status")


class ExpressionError(ValueError):
    """
    表达式处理失败，status 说明失败原因
    """
    status: ExprStatus

    def __init__(self, status: ExprStatus, message: Optional[str] = None) -> None:
        super().__init__(message or status_str(status))
        self.status = status


class TokenizeError(ExpressionError):
    """
    标记化失败

    position 为失败时的读取位置，buffer 保留失败前已提交的标记
    """
    position: int
    buffer: TokenBuffer

    def __init__(self, status: ExprStatus, position: int, buffer: TokenBuffer) -> None:
        super().__init__(status, f"{status_str(status)} (位置 {position})")
        self.position = position
        self.buffer = buffer


class ConversionError(ExpressionError):
    """
    后缀转换失败，output 保留失败前的输出栈
    """
    output: Stack[NodeRef]

    def __init__(self, status: ExprStatus, output: Stack[NodeRef]) -> None:
        super().__init__(status)
        self.output = output


ArenaSource = Union[ArenaChain, Sequence[NodeArena]]


def tokenize(source: str, arenas: ArenaSource) -> TokenBuffer:
    """
    将中缀表达式字符串分解为标记缓冲区，节点从给定的节点池链中获取

    传入 ArenaChain 时，其游标在多次调用之间保持

    Args:
        source: 中缀表达式字符串
        arenas: 节点池列表或节点池链

    Returns:
        TokenBuffer: 按源码顺序排列的标记

    Raises:
        TokenizeError: 节点不足、遇到非法字符或缓冲区无法扩容
    """
    chain = arenas if isinstance(arenas, ArenaChain) else ArenaChain(arenas)
    buffer = TokenBuffer()
    cursor = 0

    while cursor < len(source):
        # 从节点池取出一个新节点
        ref = chain.acquire()
        if ref is None:
            logging.debug(f"表达式标记化时出错: 节点不足，位置 {cursor}")
            raise TokenizeError(ExprStatus.NO_NODE, cursor, buffer)

        # 读取位置没有前进，说明遇到了无法识别的字符
        new_cursor = encode_next(ref.node, source, cursor)
        if new_cursor == cursor:
            logging.debug(f"表达式标记化时出错: 非法字符 {source[cursor]!r}，位置 {cursor}")
            raise TokenizeError(ExprStatus.BAD_SYMBOL, cursor, buffer)

        if not buffer.append(ref):
            raise TokenizeError(ExprStatus.NO_EXPR, cursor, buffer)
        cursor = new_cursor

    logging.debug(f"表达式已标记化，共 {len(buffer)} 个标记")
    return buffer


def _handle_operator(op_stack: Stack[NodeRef], out_stack: Stack[NodeRef], ref: NodeRef) -> None:
    # 栈顶运算符优先级更高，或同级且都是左结合时，先移到输出栈
    while True:
        top = op_stack.peek()
        if top is None or top.kind is NodeKind.LPAREN:
            break
        if compare(top.op, ref.op) not in (Precedence.GREATER, Precedence.SAME_LEFT_ASSOC):
            break
        out_stack.push(op_stack.pop())
    op_stack.push(ref)


def _handle_rparen(op_stack: Stack[NodeRef], out_stack: Stack[NodeRef]) -> bool:
    """
    将运算符移到输出栈直到遇到左括号并丢弃该左括号，没有找到左括号时返回 False
    """
    while True:
        top = op_stack.pop()
        if top is None:
            return False
        if top.kind is NodeKind.LPAREN:
            return True
        out_stack.push(top)


def to_postfix(tokens: TokenBuffer) -> Stack[NodeRef]:
    """
    使用调度场算法将中缀标记转换为后缀表达式（逆波兰表示法）

    Returns:
        Stack[NodeRef]: 输出栈，从栈底到栈顶即为后缀序列

    Raises:
        ConversionError: 括号不匹配、出现未知标记或栈无法扩容
    """
    op_stack: Stack[NodeRef] = Stack()
    out_stack: Stack[NodeRef] = Stack()

    try:
        for ref in tokens:
            kind = ref.kind
            if kind is NodeKind.LITERAL:
                # 数字直接加入输出栈
                out_stack.push(ref)
            elif kind is NodeKind.OPERATOR:
                _handle_operator(op_stack, out_stack, ref)
            elif kind is NodeKind.LPAREN:
                op_stack.push(ref)
            elif kind is NodeKind.RPAREN:
                if not _handle_rparen(op_stack, out_stack):
                    raise ConversionError(ExprStatus.MISMATCHED_PAREN, out_stack)
            else:
                logging.error(f"未知标记进入了后缀转换: {ref!r}")
                raise ConversionError(ExprStatus.INTERNAL_ERROR, out_stack)

        # 弹出剩余运算符，此时不应再有括号
        while not op_stack.is_empty():
            top = op_stack.pop()
            if top.kind is NodeKind.LPAREN:
                raise ConversionError(ExprStatus.MISMATCHED_PAREN, out_stack)
            out_stack.push(top)
    except MemoryError:
        logging.error("转换后缀表达式时栈无法扩容")
        raise ConversionError(ExprStatus.NO_EXPR, out_stack)

    logging.debug(f"表达式已转换为逆波兰式: {postfix_text(out_stack)}")
    return out_stack


def parse(source: str, arenas: Optional[ArenaSource] = None) -> Stack[NodeRef]:
    """
    标记化并转换为后缀表达式

    未提供节点池时，按字符串长度创建一个足够大的节点池
    """
    if arenas is None:
        arenas = [create_arena(len(source))]
    return to_postfix(tokenize(source, arenas))


def format_ref(ref: NodeRef) -> str:
    return format_node(ref.node)


def postfix_text(stack: Stack[NodeRef]) -> str:
    """
    后缀表达式的单行写法，如 "2 3 4 * +"
    """
    return " ".join(node_symbol(ref.node) for ref in stack)


def describe_error(source: str, error: ExpressionError) -> str:
    """
    生成便于阅读的错误说明，非法字符时附带从该位置开始的剩余字符串
    """
    message = status_str(error.status)
    if isinstance(error, TokenizeError) and error.status is ExprStatus.BAD_SYMBOL and error.position < len(source):
        message += f" starting at \"{source[error.position:]}\""
    return message + "."
