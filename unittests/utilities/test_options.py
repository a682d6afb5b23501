"""
test_options
============

Tests the :class:`.UserOptions` base dataclass.

Test Cases
__________
"""

from unittest import TestCase

from dataclasses import dataclass, field

from typing import List

from vocam.utilities.options import UserOptions


@dataclass
class ExampleOptions(UserOptions):

    name: str = ' Example '

    values: List[int] = field(default_factory=list)

    def override_options(self):
        self.name = self.name.strip().lower()


@dataclass
class PlainOptions(UserOptions):

    count: int = 3


class TestUserOptions(TestCase):

    def test_options_dict(self):

        self.assertEqual(PlainOptions().options_dict, {'count': 3})

        self.assertEqual(PlainOptions(count=5).options_dict, {'count': 5})

    def test_override_options(self):

        options = ExampleOptions(values=[1, 2])

        self.assertEqual(options.options_dict, {'name': 'example', 'values': [1, 2]})

        self.assertEqual(options.name, 'example')

    def test_defaults_not_shared(self):

        first = ExampleOptions()
        second = ExampleOptions()

        first.values.append(1)

        self.assertEqual(second.values, [])
