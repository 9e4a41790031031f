from typing import Callable, Iterable, Iterator, List

from model_viewer.domain.document import BubbleNode

ViewablesListener = Callable[[List[BubbleNode]], None]


class ViewableCollection:
    """
    Observable list of the viewables discovered in the loaded document.
    Listeners receive the new list every time it is replaced.
    """

    def __init__(self):
        self._items: List[BubbleNode] = []
        self._listeners: List[ViewablesListener] = []

    @property
    def value(self) -> List[BubbleNode]:
        return list(self._items)

    def replace(self, items: Iterable[BubbleNode]) -> None:
        self._items = list(items)
        for listener in list(self._listeners):
            listener(self.value)

    def clear(self) -> None:
        self.replace([])

    def subscribe(self, listener: ViewablesListener) -> Callable[[], None]:
        """Registers a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def __iter__(self) -> Iterator[BubbleNode]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> BubbleNode:
        return self._items[index]
