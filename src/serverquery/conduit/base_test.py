import unittest
from unittest.mock import Mock

from hamcrest import assert_that, calling, is_, raises

from serverquery.conduit.base import Conduit, DefaultConduit


class ConduitTest(unittest.TestCase):

    def test_abstract_methods(self):
        sut = Conduit()
        assert_that(calling(sut.close), raises(NotImplementedError))
        assert_that(calling(sut.set_timeout).with_args(1), raises(NotImplementedError))
        assert_that(calling(sut.__getattribute__).with_args('input'), raises(NotImplementedError))
        assert_that(calling(sut.__getattribute__).with_args('output'), raises(NotImplementedError))
        assert_that(calling(sut.__getattribute__).with_args('open'), raises(NotImplementedError))
        assert_that(calling(sut.__getattribute__).with_args('target'), raises(NotImplementedError))


class DefaultConduitTest(unittest.TestCase):

    def test_separate_streams(self):
        read, write = Mock(), Mock()
        sut = DefaultConduit(read, write)
        assert_that(sut.input, is_(read))
        assert_that(sut.output, is_(write))
        assert_that(sut.target, is_(read))

    def test_single_stream(self):
        stream = Mock()
        sut = DefaultConduit(stream)
        assert_that(sut.input, is_(stream))
        assert_that(sut.output, is_(stream))

    def test_close(self):
        read, write = Mock(), Mock()
        sut = DefaultConduit(read, write)
        assert_that(sut.open, is_(True))
        sut.set_timeout(1)
        sut.close()
        assert_that(sut.open, is_(False))
        read.close.assert_called_once()
        write.close.assert_called_once()
