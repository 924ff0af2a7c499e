class LastAccessError(Exception):
    """Base class for errors raised by the last-access analysis"""


class MalformedInputError(LastAccessError, ValueError):
    """
    The statement tree (or the document it was loaded from) is inconsistent.
    Fatal for the function being analysed.
    """

    def __init__(self, message, node=None):
        super().__init__(message)
        self.node = node


class UnknownSiteError(LastAccessError, KeyError):
    """A query named a site or node that is not part of the analysed function"""

    def __init__(self, site):
        super().__init__(site)
        self.site = site

    def __str__(self):
        return f"no site {self.site!r} in this function"
