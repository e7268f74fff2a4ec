from typing import Any, List, Optional


class PriorityQueue:
    """
    Priority queue for items that need attention first, such as escalated
    feedback. Higher priority values are served first; items with equal
    priority keep their insertion order. Priorities may be any comparable
    value, including tuples.
    """

    def __init__(self):
        self.queue = []

    def enqueue(self, item: Any, priority: Any = 0):
        """
        Add an item with a given priority.

        Time Complexity: O(n log n) where n is the queue size
        """
        self.queue.append((priority, item))
        self.queue.sort(key=lambda x: x[0], reverse=True)

    def dequeue(self) -> Optional[Any]:
        """Remove and return the highest priority item."""
        if self.is_empty():
            return None
        return self.queue.pop(0)[1]

    def peek(self) -> Optional[Any]:
        """View the highest priority item without removing it."""
        if self.is_empty():
            return None
        return self.queue[0][1]

    def remove(self, item: Any) -> bool:
        """Drop a specific item. Returns False if it was not queued."""
        for index, (_, queued) in enumerate(self.queue):
            if queued is item:
                del self.queue[index]
                return True
        return False

    def items(self) -> List[Any]:
        """All items in service order, without removing them."""
        return [item for _, item in self.queue]

    def is_empty(self) -> bool:
        return len(self.queue) == 0

    def size(self) -> int:
        return len(self.queue)

    def clear(self):
        self.queue.clear()
