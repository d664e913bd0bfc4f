# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import typing as tp
from . import errors


X = tp.TypeVar("X")


# pylint does not understand Dict[str, X],
# so we reimplement the MutableMapping interface
class Registry(tp.MutableMapping[str, X]):
    """Registers named objects (strategies, presets) as a dict."""

    def __init__(self) -> None:
        super().__init__()
        self.data: tp.Dict[str, X] = {}

    def register_name(self, name: str, obj: X) -> None:
        """Register an object with a provided name"""
        if name in self:
            raise RuntimeError(f'Encountered a name collision "{name}"')
        self[name] = obj

    def unregister(self, name: str) -> None:
        """Remove a previously-registered object, e.g. so you can
        re-register it in a Jupyter notebook.
        """
        if name in self:
            del self[name]

    def resolve(self, obj: tp.Union[str, X]) -> X:
        """Returns the object registered under the provided name,
        or the object itself if it is not a name
        """
        if not isinstance(obj, str):
            return obj
        if obj not in self:
            raise errors.DevoValueError(f'Unknown name "{obj}", available: {sorted(self)}')
        return self[obj]

    def __getitem__(self, key: str) -> X:
        return self.data[key]

    def __setitem__(self, key: str, value: X) -> None:
        self.data[key] = value

    def __delitem__(self, key: str) -> None:
        del self.data[key]

    def __iter__(self) -> tp.Iterator[str]:
        return iter(self.data)

    def __len__(self) -> int:
        return len(self.data)
