import logging
from typing import Iterator, List, Optional

from arena import NodeRef
from config import TOKEN_BUFFER_INITIAL_CAPACITY


class TokenBuffer:
    """
    按源码顺序保存节点引用的可增长序列

    缓冲区本身不拥有节点，节点归节点池所有。容量从 1 开始，不足时翻倍。
    """
    capacity: int
    length: int

    def __init__(self) -> None:
        self.capacity = TOKEN_BUFFER_INITIAL_CAPACITY
        self.length = 0
        self._refs: List[Optional[NodeRef]] = [None] * self.capacity

    def append(self, ref: NodeRef) -> bool:
        """
        追加一个节点引用，扩容失败时返回 False
        """
        # 写入之前先检查容量
        if self.length + 1 >= self.capacity:
            try:
                self._refs.extend([None] * self.capacity)
            except MemoryError:
                logging.error(f"标记缓冲区无法扩容，当前容量 {self.capacity}")
                return False
            self.capacity <<= 1

        self._refs[self.length] = ref
        self.length += 1
        return True

    def clear(self) -> None:
        self.capacity = TOKEN_BUFFER_INITIAL_CAPACITY
        self.length = 0
        self._refs = [None] * self.capacity

    def to_list(self) -> List[NodeRef]:
        return self._refs[:self.length]

    def __getitem__(self, index: int) -> NodeRef:
        if not -self.length <= index < self.length:
            raise IndexError(f"标记索引越界: {index}")
        return self._refs[index % self.length]

    def __len__(self) -> int:
        return self.length

    def __iter__(self) -> Iterator[NodeRef]:
        return iter(self.to_list())


def destroy_token_buffer(buffer: TokenBuffer) -> None:
    buffer.clear()
