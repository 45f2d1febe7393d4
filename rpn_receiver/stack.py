import logging
from typing import Callable, Generic, Iterator, List, Optional, TypeVar

from config import resolve_capacity

T = TypeVar('T')


class Stack(Generic[T]):
    """
    容量按倍数增长的后进先出栈，只保存引用，不拥有元素
    """
    capacity: int
    size: int

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = resolve_capacity(capacity)
        self.size = 0
        self._data: List[Optional[T]] = [None] * self.capacity
        logging.debug(f"栈已初始化，容量 {self.capacity}")

    def _grow_if_needed(self) -> None:
        # 写入之前先检查容量，不足时容量翻倍
        if self.size + 1 >= self.capacity:
            self._data.extend([None] * self.capacity)
            self.capacity <<= 1

    def is_empty(self) -> bool:
        return self.size == 0

    def push(self, item: T) -> T:
        """
        压入元素，仅在扩容时内存不足才会失败（抛出 MemoryError）
        """
        self._grow_if_needed()
        self._data[self.size] = item
        self.size += 1
        return item

    def pop(self) -> Optional[T]:
        """
        弹出并返回栈顶元素，栈为空时返回 None
        """
        if self.is_empty():
            return None
        self.size -= 1
        item = self._data[self.size]
        self._data[self.size] = None
        return item

    def peek(self) -> Optional[T]:
        if self.is_empty():
            return None
        return self._data[self.size - 1]

    def to_list(self) -> List[T]:
        """
        按从栈底到栈顶的顺序返回元素
        """
        return self._data[:self.size]

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[T]:
        return iter(self.to_list())


def format_stack(stack: Stack[T], formatter: Callable[[T], str] = str) -> List[str]:
    """
    生成栈的诊断输出，元素从栈顶到栈底排列
    """
    lines = [f"Stack Capacity: {stack.capacity}", f"Stack Size: {stack.size}"]
    if stack.is_empty():
        lines.append("The stack is empty!")
    else:
        lines.append("Stack Contents: ...")
        items = stack.to_list()
        for i in range(len(items), 0, -1):
            try:
                text = formatter(items[i - 1])
            except (TypeError, RuntimeError) as e:
                logging.error(f"格式化栈元素 {i - 1} 时出错: {e}")
                text = "Formatting Error"
            lines.append(f"\t{i - 1}\t{text}")
    return lines
