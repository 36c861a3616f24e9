import unittest

from hamcrest import assert_that, is_

from serverquery.codecs import decode, encode


class EncodeTest(unittest.TestCase):

    def test_plain_text_is_unchanged(self):
        assert_that(encode('serveradmin'), is_('serveradmin'))

    def test_delimiters_are_escaped(self):
        assert_that(encode('a b|c'), is_(r'a\sb\pc'))

    def test_slash_is_escaped(self):
        assert_that(encode('http://x'), is_(r'http:\/\/x'))

    def test_backslash_is_escaped_once(self):
        assert_that(encode('a\\ b'), is_(r'a\\\sb'))

    def test_control_characters(self):
        assert_that(encode('\a\b\f\n\r\t\v'), is_(r'\a\b\f\n\r\t\v'))

    def test_empty(self):
        assert_that(encode(''), is_(''))


class DecodeTest(unittest.TestCase):

    def test_escapes(self):
        assert_that(decode(r'lorem\sipsum\p\/'), is_('lorem ipsum|/'))

    def test_escaped_backslash_before_s(self):
        assert_that(decode(r'a\\s'), is_('a\\s'))

    def test_unknown_escape_is_kept(self):
        assert_that(decode(r'a\qb'), is_(r'a\qb'))

    def test_trailing_backslash_is_kept(self):
        assert_that(decode('a\\'), is_('a\\'))

    def test_reverses_encode(self):
        for raw in ('Welcome to TeamSpeak, check [URL]www.teamspeak.com[/URL]', 'tab\there', 'x\\y|z'):
            assert_that(decode(encode(raw)), is_(raw))
