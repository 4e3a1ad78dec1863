"""Scoped ownership of intermediate buffers."""

from typing import Any, List


class TensorScope:
    """Own the intermediate buffers of one processing stage.

    Buffers registered with :meth:`track` are released when the ``with`` block
    ends, whether it returns normally, returns early or raises. Objects that
    expose a ``release`` or ``close`` method (ONNX values, video handles) have
    it called. For plain numpy arrays and torch tensors the scope only drops
    its own reference; their memory is freed once the caller's locals go too,
    which for a per-frame scope is when the frame function returns.

    Example:
        with TensorScope() as scope:
            tensor = scope.track(preprocess(frame))
            ...
    """

    def __init__(self, name: str = "frame"):
        self.name = name
        self._buffers: List[Any] = []
        self.released = 0
        self.closed = False

    @property
    def live(self) -> int:
        """Number of buffers currently owned by the scope."""
        return len(self._buffers)

    def track(self, *buffers):
        """Register buffers with the scope.

        Returns:
            The single buffer passed in, or a tuple when given several.
        """
        if self.closed:
            raise RuntimeError(f"Scope '{self.name}' is already closed")
        self._buffers.extend(buffers)
        return buffers[0] if len(buffers) == 1 else buffers

    def release(self) -> None:
        """Release every tracked buffer, most recent first."""
        while self._buffers:
            buffer = self._buffers.pop()
            for method in ("release", "close"):
                hook = getattr(buffer, method, None)
                if callable(hook):
                    hook()
                    break
            self.released += 1
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
