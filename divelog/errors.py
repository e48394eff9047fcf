"""Exception types raised while decoding and handling dive-log elements."""


class DiveLogError(Exception):
    """Base class for all dive-log parsing errors."""


class DecodeError(DiveLogError, ValueError):
    """An attribute value could not be decoded into its typed form."""


class ElementError(DiveLogError):
    """
    An element's contribution must be dropped.

    Raised from an element-open handler; the dispatcher logs it with the
    source position and skips the element together with its subtree.
    """


class NestingError(ElementError):
    """An element appeared where the document structure does not allow it."""


class MissingAttributeError(ElementError):
    """A required attribute is absent."""

    def __init__(self, element: str, attribute: str):
        super().__init__(f"missing <{element}> attribute: {attribute}")
        self.element = element
        self.attribute = attribute
