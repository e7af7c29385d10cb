def quote(val):
    return "'" + str(val) + "'" if val is not None else "None"


class CommonEqualityMixin(object):
    """  a shallow equals comparison for value objects, based on the instance dictionary. """

    def __eq__(self, other):
        return isinstance(other, self.__class__) and self.__dict__ == other.__dict__

    def __ne__(self, other):
        return not self.__eq__(other)

    # mutable value objects are not hashable
    __hash__ = None

    def __repr__(self):
        """
        outputs the class name and the object dictionary in key sorted order
        """
        return self.__class__.__name__ + "{" + ", ".join(
            [str(key) + ": " + quote(val) for key, val in sorted(self.__dict__.items())]) + "}"
