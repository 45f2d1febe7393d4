import unittest
from typing import List
from unittest.mock import patch

from arena import ArenaChain, create_arena
from expression import (
    ConversionError, ExprStatus, ExpressionError, TokenizeError, describe_error, format_ref, parse,
    postfix_text, status_str, to_postfix, tokenize
)
from node import NodeKind, format_node
from stack import Stack, format_stack
from token_buffer import TokenBuffer


def convert(source: str) -> str:
    return postfix_text(to_postfix(tokenize(source, [create_arena(len(source))])))


def token_lines(source: str) -> List[str]:
    return [format_node(ref.node) for ref in tokenize(source, [create_arena(len(source))])]


class TestTokenize(unittest.TestCase):
    def test_token_count_matches_lexical_units(self):
        """测试标记数量: 12+3.5*(4-1) 共 9 个标记"""
        buffer = tokenize("12+3.5*(4-1)", [create_arena(0)])
        self.assertEqual(9, len(buffer))
        kinds = [ref.kind for ref in buffer]
        self.assertEqual(
            [NodeKind.LITERAL, NodeKind.OPERATOR, NodeKind.LITERAL, NodeKind.OPERATOR, NodeKind.LPAREN,
             NodeKind.LITERAL, NodeKind.OPERATOR, NodeKind.LITERAL, NodeKind.RPAREN],
            kinds
        )

    def test_source_order(self):
        self.assertEqual(["Literal: 2.000", "Operator: Add", "Literal: 3.500"], token_lines("2+3.5"))

    def test_empty_source(self):
        self.assertEqual(0, len(tokenize("", [create_arena(0)])))

    def test_exhaustion_commits_one_token(self):
        """测试节点耗尽: 容量 1 的节点池处理两个标记"""
        with self.assertRaises(TokenizeError) as ctx:
            tokenize("2+", [create_arena(1)])
        self.assertEqual(ExprStatus.NO_NODE, ctx.exception.status)
        self.assertEqual(1, ctx.exception.position)
        self.assertEqual(1, len(ctx.exception.buffer))
        self.assertEqual(2.0, ctx.exception.buffer[0].value)

    def test_unknown_symbol(self):
        """测试非法字符: 2+? 在位置 2 失败，已提交 2 和 +"""
        arena = create_arena(0)
        with self.assertRaises(TokenizeError) as ctx:
            tokenize("2+?", [arena])
        error = ctx.exception
        self.assertEqual(ExprStatus.BAD_SYMBOL, error.status)
        self.assertEqual(2, error.position)
        self.assertEqual(["Literal: 2.000", "Operator: Add"], [format_ref(ref) for ref in error.buffer])
        self.assertIsInstance(error, ValueError)

    def test_whitespace_is_bad_symbol(self):
        with self.assertRaises(TokenizeError) as ctx:
            tokenize("2 + 3", [create_arena(0)])
        self.assertEqual(ExprStatus.BAD_SYMBOL, ctx.exception.status)
        self.assertEqual(1, ctx.exception.position)

    def test_continues_into_next_arena(self):
        first = create_arena(3)
        second = create_arena(3)
        buffer = tokenize("1+2*3", [first, second])
        self.assertEqual(5, len(buffer))
        self.assertEqual(3, first.used)
        self.assertEqual(2, second.used)
        self.assertIs(second, buffer[4].arena)

    def test_all_arenas_exhausted(self):
        with self.assertRaises(TokenizeError) as ctx:
            tokenize("1+2*3", [create_arena(2), create_arena(2)])
        self.assertEqual(ExprStatus.NO_NODE, ctx.exception.status)
        self.assertEqual(4, ctx.exception.position)
        self.assertEqual(4, len(ctx.exception.buffer))

    def test_chain_cursor_persists_between_calls(self):
        first = create_arena(2)
        second = create_arena(4)
        chain = ArenaChain([first, second])
        tokenize("1+2", chain)
        self.assertEqual(1, chain.cursor)
        tokenize("3", chain)
        self.assertEqual(2, first.used)
        self.assertEqual(2, second.used)


class TestToPostfix(unittest.TestCase):
    def test_precedence(self):
        """测试优先级: 2+3*4 => 2 3 4 * +"""
        self.assertEqual("2 3 4 * +", convert("2+3*4"))

    def test_parentheses(self):
        """测试括号: (2+3)*4 => 2 3 + 4 *"""
        self.assertEqual("2 3 + 4 *", convert("(2+3)*4"))

    def test_right_associative_power(self):
        """测试右结合: 2^3^2 => 2 3 2 ^ ^"""
        self.assertEqual("2 3 2 ^ ^", convert("2^3^2"))

    def test_left_associative_chains(self):
        self.assertEqual("8 4 / 2 /", convert("8/4/2"))
        self.assertEqual("1 2 - 3 +", convert("1-2+3"))
        self.assertEqual("6 2 / 3 *", convert("6/2*3"))

    def test_mixed_tiers(self):
        self.assertEqual("2 3 ^ 4 *", convert("2^3*4"))
        self.assertEqual("2 3 2 ^ *", convert("2*3^2"))
        self.assertEqual("1 2 3 * 4 / + 5 -", convert("1+2*3/4-5"))

    def test_nested_parentheses(self):
        self.assertEqual("1", convert("((1))"))
        self.assertEqual("2 3 4 - 5 * ^", convert("2^((3-4)*5)"))

    def test_output_holds_refs_in_postfix_order(self):
        output = to_postfix(tokenize("(2+3)*4", [create_arena(0)]))
        self.assertEqual(
            ["Literal: 2.000", "Literal: 3.000", "Operator: Add", "Literal: 4.000", "Operator: Multiply"],
            [format_ref(ref) for ref in output]
        )

    def test_idempotent(self):
        """测试重复转换: 使用新的节点池结果完全相同"""
        source = "3.5*(2-1)^2^3/7"
        first = [format_ref(ref) for ref in parse(source, [create_arena(0)])]
        second = [format_ref(ref) for ref in parse(source, [create_arena(0)])]
        self.assertEqual(first, second)

    def test_empty_buffer(self):
        self.assertTrue(to_postfix(TokenBuffer()).is_empty())

    def test_unclosed_left_paren(self):
        """测试括号不匹配: (2+3 未闭合"""
        with self.assertRaises(ConversionError) as ctx:
            to_postfix(tokenize("(2+3", [create_arena(0)]))
        self.assertEqual(ExprStatus.MISMATCHED_PAREN, ctx.exception.status)

    def test_unopened_right_paren(self):
        with self.assertRaises(ConversionError) as ctx:
            to_postfix(tokenize("2+3)", [create_arena(0)]))
        self.assertEqual(ExprStatus.MISMATCHED_PAREN, ctx.exception.status)
        self.assertEqual("2 3 +", postfix_text(ctx.exception.output))

    def test_unknown_node_is_internal_error(self):
        arena = create_arena(2)
        buffer = TokenBuffer()
        buffer.append(arena.acquire())
        with self.assertRaises(ConversionError) as ctx:
            to_postfix(buffer)
        self.assertEqual(ExprStatus.INTERNAL_ERROR, ctx.exception.status)

    def test_format_stack_of_postfix(self):
        output = parse("2+3")
        self.assertEqual(
            ["Stack Capacity: 16", "Stack Size: 3", "Stack Contents: ...",
             "\t2\tOperator: Add", "\t1\tLiteral: 3.000", "\t0\tLiteral: 2.000"],
            format_stack(output, format_ref)
        )


class TestErrorReporting(unittest.TestCase):
    def test_status_messages(self):
        self.assertEqual("Expression OK", status_str(ExprStatus.OK))
        self.assertEqual("Insufficient nodes", status_str(ExprStatus.NO_NODE))
        self.assertEqual("Internal error; please report!", status_str(ExprStatus.INTERNAL_ERROR))

    def test_describe_bad_symbol(self):
        source = "2+?1"
        with self.assertRaises(TokenizeError) as ctx:
            parse(source)
        self.assertEqual("Unexpected symbol starting at \"?1\".", describe_error(source, ctx.exception))

    def test_describe_other_errors(self):
        source = "(1"
        with self.assertRaises(ExpressionError) as ctx:
            parse(source)
        self.assertEqual("Mismatched parenthesis.", describe_error(source, ctx.exception))


class TestCapacityExhaustion(unittest.TestCase):
    def test_tokenize_buffer_growth_failure(self):
        """测试标记缓冲区无法扩容: 已提交的标记保留"""
        original_append = TokenBuffer.append

        def failing_append(self, ref):
            if len(self) >= 2:
                return False
            return original_append(self, ref)

        with patch.object(TokenBuffer, 'append', new=failing_append):
            with self.assertRaises(TokenizeError) as ctx:
                tokenize("1+2*3", [create_arena(0)])
        error = ctx.exception
        self.assertEqual(ExprStatus.NO_EXPR, error.status)
        self.assertEqual(2, error.position)
        self.assertEqual(["Literal: 1.000", "Operator: Add"], [format_ref(ref) for ref in error.buffer])
        self.assertEqual("Insufficient expression capacity.", describe_error("1+2*3", error))

    def test_to_postfix_stack_growth_failure(self):
        """测试输出栈无法扩容: 抛出 NO_EXPR 并保留已输出的部分"""
        tokens = tokenize("1+2*3", [create_arena(0)])
        original_grow = Stack._grow_if_needed

        def failing_grow(self):
            if self.size >= 2:
                raise MemoryError()
            original_grow(self)

        with patch.object(Stack, '_grow_if_needed', new=failing_grow):
            with self.assertRaises(ConversionError) as ctx:
                to_postfix(tokens)
        self.assertEqual(ExprStatus.NO_EXPR, ctx.exception.status)
        self.assertEqual("1 2", postfix_text(ctx.exception.output))

    def test_to_postfix_first_push_fails(self):
        tokens = tokenize("7", [create_arena(0)])
        with patch.object(Stack, '_grow_if_needed', side_effect=MemoryError):
            with self.assertRaises(ConversionError) as ctx:
                to_postfix(tokens)
        self.assertEqual(ExprStatus.NO_EXPR, ctx.exception.status)
        self.assertTrue(ctx.exception.output.is_empty())


if __name__ == "__main__":
    unittest.main(verbosity=2)
