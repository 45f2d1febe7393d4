from enum import Enum
from typing import Optional


class NodeKind(Enum):
    """
    节点类型，决定节点中数据的解读方式
    """
    UNKNOWN = "unknown"
    OPERATOR = "operator"
    LITERAL = "literal"
    LPAREN = "lparen"
    RPAREN = "rparen"


class Operator(Enum):
    """
    支持的运算符，按优先级从高到低排列
    """
    POWER = "Power"
    DIVIDE = "Divide"
    MULTIPLY = "Multiply"
    ADD = "Add"
    SUBTRACT = "Subtract"


class Precedence(Enum):
    """
    两个运算符优先级比较的结果
    """
    GREATER = "greater"
    LESSER = "lesser"
    SAME = "same"
    SAME_LEFT_ASSOC = "same_left_assoc"


operator_symbols: dict[str, Operator] = {
    '^': Operator.POWER,
    '/': Operator.DIVIDE,
    '*': Operator.MULTIPLY,
    '+': Operator.ADD,
    '-': Operator.SUBTRACT,
}

symbol_of: dict[Operator, str] = {op: symbol for symbol, op in operator_symbols.items()}

# 优先级层级，1 为最高
precedence: dict[Operator, int] = {
    Operator.POWER: 1,
    Operator.DIVIDE: 2,
    Operator.MULTIPLY: 2,
    Operator.ADD: 3,
    Operator.SUBTRACT: 3,
}
right_associative: set[Operator] = {Operator.POWER}


def compare(a: Operator, b: Operator) -> Precedence:
    """
    比较运算符 a 相对于 b 的优先级

    层级相同时，只有两者都是左结合才返回 SAME_LEFT_ASSOC，否则返回 SAME
    """
    tier_a = precedence[a]
    tier_b = precedence[b]
    if tier_a < tier_b:
        return Precedence.GREATER
    if tier_a > tier_b:
        return Precedence.LESSER
    if a not in right_associative and b not in right_associative:
        return Precedence.SAME_LEFT_ASSOC
    return Precedence.SAME


class Node:
    """
    一个词法单元：数字字面量、运算符、左右括号或未知

    数据只在对应的类型下有意义，读取错误类型的数据属于编程错误，抛出 TypeError
    """
    kind: NodeKind
    _value: Optional[float]
    _op: Optional[Operator]

    def __init__(self) -> None:
        self.reset()

    def reset(self) -> None:
        self.kind = NodeKind.UNKNOWN
        self._value = None
        self._op = None

    def encode_literal(self, value: float) -> None:
        self.kind = NodeKind.LITERAL
        self._value = float(value)
        self._op = None

    def encode_operator(self, op: Operator) -> None:
        self.kind = NodeKind.OPERATOR
        self._op = op
        self._value = None

    def encode_paren(self, kind: NodeKind) -> None:
        if kind not in (NodeKind.LPAREN, NodeKind.RPAREN):
            raise TypeError(f"不是括号类型: {kind}")
        self.kind = kind
        self._value = None
        self._op = None

    @property
    def value(self) -> float:
        if self.kind is not NodeKind.LITERAL:
            raise TypeError(f"{self.kind.value} 节点没有数值")
        return self._value

    @property
    def op(self) -> Operator:
        if self.kind is not NodeKind.OPERATOR:
            raise TypeError(f"{self.kind.value} 节点没有运算符")
        return self._op

    def __repr__(self) -> str:
        return f"Node({format_node(self)})"


def format_node(node: Node) -> str:
    """
    将节点格式化为便于阅读的文本，如 "Literal: 3.000"、"Operator: Add"
    """
    if node.kind is NodeKind.LITERAL:
        return f"Literal: {node.value:.3f}"
    elif node.kind is NodeKind.OPERATOR:
        return f"Operator: {node.op.value}"
    elif node.kind is NodeKind.LPAREN:
        return "Left Parenthesis"
    elif node.kind is NodeKind.RPAREN:
        return "Right Parenthesis"
    else:
        return "Not Implemented"


def node_symbol(node: Node) -> str:
    """
    节点的紧凑写法，用于后缀表达式的单行输出
    """
    if node.kind is NodeKind.LITERAL:
        return f"{node.value:g}"
    elif node.kind is NodeKind.OPERATOR:
        return symbol_of[node.op]
    elif node.kind is NodeKind.LPAREN:
        return "("
    elif node.kind is NodeKind.RPAREN:
        return ")"
    else:
        return "?"
