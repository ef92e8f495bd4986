"""
Bijective Encoder

Converts between non-negative integers and short strings over a
human-friendly alphabet, and generates random strings from it.
"""

import secrets

from ..errors import EncodingError

# Doesn't contain 01loIO (easily confused when typing URLs manually)
# and no vowels (avoids forming actual words)
DEFAULT_ALPHABET = "23456789bcdfghjkmnpqrstvwxyzBCDFGHJKLMNPQRSTVWXYZ"


class BijectiveEncoder:
    """
    Integer <-> string conversion over a fixed alphabet.

    ``encode(0)`` yields the first alphabet character, so every integer
    has exactly one representation. Values must be decoded with the
    alphabet they were encoded with.
    """

    def __init__(self, alphabet: str = DEFAULT_ALPHABET):
        if len(alphabet) < 2 or len(set(alphabet)) != len(alphabet):
            raise EncodingError("The alphabet needs at least two unique characters")

        self.alphabet = alphabet
        self.base = len(alphabet)
        self._positions = {char: pos for pos, char in enumerate(alphabet)}

    def encode(self, integer: int) -> str:
        """
        Convert an integer to its string representation.

        Raises:
            EncodingError: If the integer is negative
        """
        if integer < 0:
            raise EncodingError("Only non-negative integers are supported")
        if integer == 0:
            return self.alphabet[0]

        chars = []
        while integer > 0:
            integer, remainder = divmod(integer, self.base)
            chars.append(self.alphabet[remainder])

        return "".join(reversed(chars))

    def decode(self, string: str) -> int:
        """
        Convert a string in this alphabet back to its integer.

        Raises:
            EncodingError: If a character is not in the alphabet
        """
        integer = 0
        for char in string:
            pos = self._positions.get(char)
            if pos is None:
                raise EncodingError(f'Char "{char}" is not in the alphabet')
            integer = integer * self.base + pos

        return integer

    def random_string(self, chars: int) -> str:
        """Generate ``chars`` random characters from the alphabet."""
        if chars < 1:
            raise EncodingError("chars must be at least 1")

        return "".join(secrets.choice(self.alphabet) for _ in range(chars))


_default = BijectiveEncoder()


def encode(integer: int) -> str:
    return _default.encode(integer)


def decode(string: str) -> int:
    return _default.decode(string)


def random_string(chars: int) -> str:
    return _default.random_string(chars)
