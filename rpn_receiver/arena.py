import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from config import resolve_capacity
from node import Node, NodeKind, Operator


class NodeArena:
    """
    固定容量、只增不减的节点池

    节点在创建时一次性分配，之后按顺序发放，池内节点不会被回收或复用。
    池被销毁后，它发放过的所有引用都失效。
    """
    capacity: int
    used: int
    alive: bool

    def __init__(self, capacity: int = 0) -> None:
        self.capacity = resolve_capacity(capacity)
        self.used = 0
        self._nodes: List[Node] = [Node() for _ in range(self.capacity)]
        self.alive = True
        logging.debug(f"节点池已初始化，容量 {self.capacity}")

    def is_full(self) -> bool:
        return self.used == self.capacity

    def remaining(self) -> int:
        return self.capacity - self.used

    def acquire(self) -> Optional['NodeRef']:
        """
        取出下一个未使用的节点，池满时返回 None
        """
        if not self.alive:
            raise RuntimeError("节点池已销毁")
        if self.is_full():
            return None
        ref = NodeRef(self, self.used)
        self.used += 1
        return ref

    def resolve(self, index: int) -> Node:
        if not self.alive:
            raise RuntimeError("节点池已销毁，引用已失效")
        if not 0 <= index < self.used:
            raise IndexError(f"节点 {index} 尚未从节点池中发放")
        return self._nodes[index]

    def destroy(self) -> None:
        if self.alive:
            self._nodes = []
            self.alive = False
            logging.debug("节点池已销毁")

    def __repr__(self) -> str:
        state = "alive" if self.alive else "destroyed"
        return f"NodeArena({self.used}/{self.capacity}, {state})"


@dataclass(frozen=True)
class NodeRef:
    """
    指向节点池中某个槽位的句柄，生命周期与节点池相同
    """
    arena: NodeArena
    index: int

    @property
    def node(self) -> Node:
        return self.arena.resolve(self.index)

    @property
    def kind(self) -> NodeKind:
        return self.node.kind

    @property
    def value(self) -> float:
        return self.node.value

    @property
    def op(self) -> Operator:
        return self.node.op

    def __repr__(self) -> str:
        if not self.arena.alive:
            return f"NodeRef({self.index}, dangling)"
        return f"NodeRef({self.index}, {self.node!r})"


class ArenaChain:
    """
    按顺序使用的一组节点池

    当前池耗尽后游标前进到下一个池，游标只前进不回退，
    后续获取从上次停下的池继续。
    """
    arenas: List[NodeArena]
    cursor: int

    def __init__(self, arenas: Sequence[NodeArena], cursor: int = 0) -> None:
        self.arenas = list(arenas)
        self.cursor = cursor

    def acquire(self) -> Optional[NodeRef]:
        while self.cursor < len(self.arenas):
            ref = self.arenas[self.cursor].acquire()
            if ref is not None:
                return ref
            self.cursor += 1
        return None


def create_arena(capacity: int = 0) -> NodeArena:
    return NodeArena(capacity)


def destroy_arena(arena: NodeArena) -> None:
    arena.destroy()
