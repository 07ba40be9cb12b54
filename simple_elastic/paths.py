"""
Path tracking while reading a JSON token stream

Paths are dot-joined for both object keys and array indices: in {"obj": [{"a": 1}]} the
value 1 lives at "obj.0.a". This is the only path format used in simple_elastic, and
consumers may match on it.
"""

PATH_SEPARATOR = "."


class ArrayFrame:
    """An open array: the depth its start token was read at, and the index of the current element"""

    def __init__(self, start_depth: int, next_index: int = 0):
        self.start_depth = start_depth
        self.next_index = next_index

    def __repr__(self):
        return f"<ArrayFrame start_depth={self.start_depth} next_index={self.next_index}>"


class PathTracker:
    """
    Keeps the path of the current read position in a single forward pass.

    There is one segment per open level below the starting depth: the property name for object members,
    the element index for array elements. When a value directly inside an array is done, its index
    segment is replaced by the index of the next element. Because of that, an open array always has
    one index segment reserved for an element that may never come; it is dropped when the array closes.
    """

    def __init__(self, separator: str = PATH_SEPARATOR):
        self.separator = separator
        self.segments: list[str] = []
        self.arrays: list[ArrayFrame] = []

    def __repr__(self):
        return f"<PathTracker path={self.current_path()!r} arrays={len(self.arrays)}>"

    def enter_object_field(self, name: str) -> None:
        self.segments.append(name)

    def enter_array(self, depth: int) -> None:
        self.segments.append("0")
        self.arrays.append(ArrayFrame(start_depth=depth))

    def exit_array(self, depth: int) -> None:
        self.arrays.pop()
        self.segments.pop()
        self.exit_value(depth)

    def exit_value(self, depth: int) -> None:
        """
        A value that was read at the given depth is complete (a scalar, or a closed object or array).
        Drop the segment that produced it, and move on to the next index if its parent is an array.
        """
        self.segments.pop()
        if self.arrays and self.arrays[-1].start_depth == depth - 1:
            frame = self.arrays[-1]
            frame.next_index += 1
            self.segments.append(str(frame.next_index))

    leaf_consumed = exit_value
    exit_object = exit_value

    def current_path(self) -> str:
        return self.separator.join(self.segments)
