import unittest
from datetime import datetime, timezone

import timeout_decorator
from hamcrest import assert_that, contains_string, has_length, is_, none

from serverquery.client import Client
from serverquery.commands import CreatedServer, EXTENDED_SERVER_LIST, Server
from serverquery.config.config import ClientConfig
from serverquery.mockserver_test import MockServer
from serverquery.protocol.command import Arg


class ServerMethodsTest(unittest.TestCase):

    def setUp(self):
        server = MockServer()
        self.addCleanup(server.close)
        self.received = server.received
        client = Client(server.address, ClientConfig(timeout=2)).connect()
        self.addCleanup(client.close)
        self.sut = client.server

    @timeout_decorator.timeout(10)
    def test_list(self):
        servers = self.sut.list()
        assert_that(servers, has_length(2))
        assert_that(servers[0].id, is_(1))
        assert_that(servers[0].name, is_('Server #1'))
        assert_that(servers[1].port, is_(10617))
        assert_that(servers[1].clients_online, is_(3))
        assert_that(servers[1].auto_start, is_(True))

    @timeout_decorator.timeout(10)
    def test_list_extended(self):
        servers = self.sut.list(EXTENDED_SERVER_LIST)
        assert_that(servers, has_length(2))
        assert_that(servers[0].name, is_('Test Server'))
        assert_that(self.received, is_(['serverlist', 'use sid=1', 'serverinfo', 'use sid=2', 'serverinfo']))

    @timeout_decorator.timeout(10)
    def test_list_passes_other_options(self):
        self.sut.list('-uid', EXTENDED_SERVER_LIST)
        assert_that(self.received[0], is_('serverlist -uid'))

    @timeout_decorator.timeout(10)
    def test_info(self):
        info = self.sut.info()
        assert_that(info, is_(Server))
        assert_that(info.name, is_('Test Server'))
        assert_that(info.status, is_('template'))
        assert_that(info.created, is_(none()))
        assert_that(info.host_message, is_(''))
        assert_that(info.host_button_url, is_('http://www.multiplaygameservers.com'))
        assert_that(info.welcome_message, contains_string('[URL]www.teamspeak.com[/URL]'))
        assert_that(info.priority_speaker_dimm_modificator, is_(-18.0))
        assert_that(info.download_quota, is_(18446744073709551615))
        assert_that(info.weblist_enabled, is_(True))
        assert_that(info.flag_password, is_(False))

    @timeout_decorator.timeout(10)
    def test_id_get_by_port(self):
        assert_that(self.sut.id_get_by_port(9987), is_(1))
        assert_that(self.received, is_(['serveridgetbyport virtualserver_port=9987']))

    @timeout_decorator.timeout(10)
    def test_instance_info(self):
        instance = self.sut.instance_info()
        assert_that(instance.database_version, is_(26))
        assert_that(instance.file_transfer_port, is_(30033))
        assert_that(instance.server_query_ban_time, is_(600))

    @timeout_decorator.timeout(10)
    def test_connection_info(self):
        info = self.sut.connection_info()
        assert_that(info.packets_sent_total, is_(926413))
        assert_that(info.connected_time, is_(49408))
        assert_that(info.ping, is_(0.0))

    @timeout_decorator.timeout(10)
    def test_create(self):
        created = self.sut.create('my server', Arg('virtualserver_port', 9988))
        assert_that(created, is_(CreatedServer(id=2, port=9988, token='eKnFZQ9EK7G7MhtuQB6+N2B1PNZZ6OZL3ycDp2OW')))
        assert_that(self.received, is_([r'servercreate virtualserver_name=my\sserver virtualserver_port=9988']))

    @timeout_decorator.timeout(10)
    def test_lifecycle(self):
        self.sut.start(2)
        self.sut.edit(Arg('virtualserver_name', 'renamed'))
        self.sut.stop(2)
        self.sut.delete(2)
        assert_that(self.received, is_(['serverstart sid=2', 'serveredit virtualserver_name=renamed',
                                        'serverstop sid=2', 'serverdelete sid=2']))

    @timeout_decorator.timeout(10)
    def test_group_list(self):
        groups = self.sut.group_list()
        assert_that(groups, has_length(2))
        assert_that(groups[0].name, is_('Guest Server Query'))
        assert_that(groups[0].saved, is_(False))
        assert_that(groups[1].icon_id, is_(500))
        assert_that(groups[1].member_remove_power, is_(100))

    @timeout_decorator.timeout(10)
    def test_channel_list(self):
        channels = self.sut.channel_list()
        assert_that(channels, has_length(1))
        assert_that(channels[0].name, is_('Default Channel'))
        assert_that(channels[0].total_clients, is_(1))

    @timeout_decorator.timeout(10)
    def test_client_list(self):
        clients = self.sut.client_list('-away', 'groups')
        assert_that(self.received, is_(['clientlist -away -groups']))
        assert_that(clients, has_length(2))
        assert_that(clients[0].nickname, is_('ScP'))
        assert_that(clients[0].away_message, is_('not here'))
        assert_that(clients[0].groups, is_(none()))
        assert_that(clients[1].away, is_(False))
        assert_that(clients[1].groups.server_groups, is_([6, 8]))
        assert_that(clients[1].groups.channel_group_id, is_(5))
        assert_that(clients[1].voice, is_(none()))

    @timeout_decorator.timeout(10)
    def test_client_db_list(self):
        clients = self.sut.client_db_list()
        assert_that(clients[0].nickname, is_('MuhChy'))
        assert_that(clients[0].created, is_(datetime(2009, 11, 25, 11, 11, 8, tzinfo=timezone.utc)))
        assert_that(clients[0].connections, is_(0))

    @timeout_decorator.timeout(10)
    def test_privilege_keys(self):
        keys = self.sut.privilege_key_list()
        assert_that(keys[0].token, is_('zTfamFVhiMEzhTl49KrOVYaMilHPDQEBQOJFh6qX'))
        assert_that(keys[0].id1, is_(17395))
        assert_that(keys[0].description, is_(''))
        assert_that(keys[0].created.year, is_(2017))

    @timeout_decorator.timeout(10)
    def test_privilege_key_add(self):
        token = self.sut.privilege_key_add(0, 6, 0, Arg('tokendescription', 'for bob'))
        assert_that(token, is_('zTfamFVhiMEzhTl49KrOVYaMilHPgQEBQOJFh6qX'))
        assert_that(self.received, is_([r'privilegekeyadd tokendescription=for\sbob tokentype=0 tokenid1=6 tokenid2=0']))
