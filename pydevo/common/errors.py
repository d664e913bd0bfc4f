# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.


# base classes


class DevoError(Exception):
    """Base class for error raised by pydevo"""


class DevoWarning(Warning):
    pass


# errors
# pylint: disable=too-many-ancestors


class DevoRuntimeError(RuntimeError, DevoError):
    """Runtime error raised by pydevo"""


class DevoTypeError(TypeError, DevoError):
    """Type error raised by pydevo"""


class DevoValueError(ValueError, DevoError):
    """Value error raised by pydevo"""


class ConfigurationError(DevoValueError):
    """Raised at initialization when the bounds do not describe a valid search space
    (lower and upper bound vectors of different lengths)
    """


# warnings


class DevoRuntimeWarning(RuntimeWarning, DevoWarning):
    """Runtime warning raised by pydevo"""


class BadLossWarning(DevoRuntimeWarning):
    """Objective function returned an unhelpful value (nan or infinite)"""
