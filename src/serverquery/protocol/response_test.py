import unittest
from datetime import datetime, timezone

from hamcrest import assert_that, calling, contains_string, equal_to, has_length, is_, none, raises

from serverquery.commands import DBClient, Group, OnlineClient, OnlineClientGroups, Version
from serverquery.protocol.response import DecodeError, Field, IntList, InvalidResponseError, Record, RecordList, \
    Timestamp, decode_response, parse_fields, parse_records, parse_value


class Sample(Record):
    fields = (
        Field('name'),
        Field('count', kind=int),
        Field('ratio', kind=float),
        Field('enabled', kind=bool),
        Field('when', kind=Timestamp),
        Field('groups', kind=IntList),
        Field('renamed', 'Other_Key'),
    )


class ParseTest(unittest.TestCase):

    def test_integer_values(self):
        assert_that(parse_value('x', '-12'), is_(-12))
        assert_that(parse_value('x', '1.5'), is_('1.5'))

    def test_server_groups(self):
        assert_that(parse_value('client_servergroups', '6'), is_(6))
        assert_that(parse_value('client_servergroups', '6,8,10'), is_([6, 8, 10]))

    def test_bad_server_groups(self):
        assert_that(calling(parse_value).with_args('client_servergroups', '6,x'),
                    raises(DecodeError, "decode server group"))

    def test_fields_are_decoded(self):
        assert_that(parse_fields(r'client_nickname=serveradmin\sfrom\s127.0.0.1:49725 flag'),
                    is_({'client_nickname': 'serveradmin from 127.0.0.1:49725', 'flag': ''}))

    def test_value_containing_equals(self):
        assert_that(parse_fields('token=abc= x=1'), is_({'token': 'abc=', 'x': 1}))

    def test_empty_value(self):
        assert_that(parse_fields('token_description='), is_({'token_description': ''}))

    def test_records(self):
        assert_that(parse_records('a=1|a=2|a=3'), has_length(3))


class RecordTest(unittest.TestCase):

    def test_defaults(self):
        sut = Sample()
        assert_that(sut.name, is_(''))
        assert_that(sut.count, is_(0))
        assert_that(sut.enabled, is_(False))
        assert_that(sut.when, is_(none()))
        assert_that(sut.groups, is_([]))

    def test_default_lists_are_not_shared(self):
        a, b = Sample(), Sample()
        a.groups.append(1)
        assert_that(b.groups, is_([]))

    def test_unknown_constructor_fields(self):
        assert_that(calling(Sample).with_args(nope=1), raises(TypeError, "unknown fields for Sample: nope"))

    def test_populate_coerces_values(self):
        sut = Sample().populate({'name': 1, 'count': '', 'ratio': '0.5000', 'enabled': 1, 'when': 1259147468,
                                 'groups': 6, 'OTHER_KEY': 'x', 'ignored': 'y'})
        assert_that(sut, equal_to(Sample(
            name='1', count=0, ratio=0.5, enabled=True, when=datetime(2009, 11, 25, 11, 11, 8, tzinfo=timezone.utc),
            groups=[6], renamed='x')))

    def test_timestamp_zero_is_unset(self):
        assert_that(Sample().populate({'when': 0}).when, is_(none()))
        assert_that(Sample().populate({'when': -1}).when, is_(none()))

    def test_bad_value_names_the_field(self):
        assert_that(calling(Sample().populate).with_args({'count': 'abc'}),
                    raises(DecodeError, r"cannot decode 'abc' into Sample.count \(int\)"))

    def test_bad_bool(self):
        assert_that(calling(Sample().populate).with_args({'enabled': 'maybe'}), raises(DecodeError))

    def test_keys_include_nested_groups(self):
        keys = OnlineClient.keys()
        assert_that('clid' in keys, is_(True))
        assert_that('client_servergroups' in keys, is_(True))

    def test_str(self):
        assert_that(str(Version(version='3')), contains_string("Version:{'build': '0'"))


class DecodeResponseTest(unittest.TestCase):

    def test_version(self):
        target = Version()
        result = decode_response(['version=3.0.12.2 build=1455547898 platform=FreeBSD'], target)
        assert_that(result, is_(target))
        assert_that(target, equal_to(Version(version='3.0.12.2', build=1455547898, platform='FreeBSD')))

    def test_multiple_records_into_a_list(self):
        target = RecordList(Group)
        decode_response([r'sgid=1 name=Guest\sServer\sQuery type=2 savedb=0|sgid=2 name=Admin\sServer\sQuery '
                         r'type=2 iconid=500 savedb=1'], target)
        assert_that(target, has_length(2))
        assert_that(target[0].name, is_('Guest Server Query'))
        assert_that(target[1].icon_id, is_(500))
        assert_that(target[1].saved, is_(True))

    def test_multiple_records_into_a_single_target(self):
        assert_that(calling(decode_response).with_args(['a=1|a=2'], Version()),
                    raises(InvalidResponseError, "expected one record, got 2"))

    def test_too_many_lines(self):
        assert_that(calling(decode_response).with_args(['a=1', 'a=2'], Version()),
                    raises(InvalidResponseError, "too many lines"))

    def test_no_lines(self):
        assert_that(calling(decode_response).with_args([], Version()), raises(InvalidResponseError, "no lines"))

    def test_unsupported_target(self):
        assert_that(calling(decode_response).with_args(['a=1'], {}), raises(TypeError))

    def test_unset_timestamps(self):
        target = RecordList(DBClient)
        decode_response(['cldbid=7 client_nickname=MuhChy client_created=0 client_lastconnected=1259421233'], target)
        assert_that(target[0].created, is_(none()))
        assert_that(target[0].last_connected.year, is_(2009))

    def test_nested_groups(self):
        target = RecordList(OnlineClient)
        decode_response([r'clid=5 cid=7 client_nickname=ScP client_away=1 client_away_message=not\shere|'
                         r'clid=6 cid=7 client_nickname=Bot client_servergroups=6,8 client_channel_group_id=5'],
                        target)
        first, second = target
        assert_that(first.away, is_(True))
        assert_that(first.away_message, is_('not here'))
        assert_that(first.groups, is_(none()))
        assert_that(first.times, is_(none()))
        assert_that(second.groups, equal_to(OnlineClientGroups(channel_group_id=5, server_groups=[6, 8])))
