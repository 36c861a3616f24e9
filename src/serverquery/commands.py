"""
Typed records and request builders for the ServerQuery commands.

Only a representative subset of the fields the server returns is mapped; keys without a declared field are
ignored when decoding.
"""
from serverquery.protocol.command import Arg, Command
from serverquery.protocol.response import Field, IntList, Record, RecordList, Timestamp

# passed to ServerMethods.list() to fetch the full information for each server
EXTENDED_SERVER_LIST = '-extended'


class Version(Record):
    """ The result of a version call. """
    fields = (
        Field('version'),
        Field('build', kind=int),
        Field('platform'),
    )


class WhoAmI(Record):
    fields = (
        Field('server_status', 'virtualserver_status'),
        Field('server_id', 'virtualserver_id', int),
        Field('server_unique_identifier', 'virtualserver_unique_identifier'),
        Field('server_port', 'virtualserver_port', int),
        Field('client_id', kind=int),
        Field('channel_id', 'client_channel_id', int),
        Field('nickname', 'client_nickname'),
        Field('database_id', 'client_database_id', int),
        Field('login_name', 'client_login_name'),
        Field('unique_identifier', 'client_unique_identifier'),
        Field('origin_server_id', 'client_origin_server_id', int),
    )


class Instance(Record):
    """ Basic information for a server instance. The result of an instanceinfo call. """
    fields = (
        Field('database_version', 'serverinstance_database_version', int),
        Field('file_transfer_port', 'serverinstance_filetransfer_port', int),
        Field('max_total_download_bandwidth', 'serverinstance_max_download_total_bandwidth', int),
        Field('max_total_upload_bandwidth', 'serverinstance_max_upload_total_bandwidth', int),
        Field('guest_server_query_group', 'serverinstance_guest_serverquery_group', int),
        Field('server_query_flood_commands', 'serverinstance_serverquery_flood_commands', int),
        Field('server_query_flood_time', 'serverinstance_serverquery_flood_time', int),
        Field('server_query_ban_time', 'serverinstance_serverquery_ban_time', int),
        Field('permissions_version', 'serverinstance_permissions_version', int),
        Field('pending_connections_per_ip', 'serverinstance_pending_connections_per_ip', int),
    )


class ServerConnectionInfo(Record):
    """ The result of a serverrequestconnectioninfo call. """
    fields = (
        Field('file_transfer_bytes_sent_total', 'connection_filetransfer_bytes_sent_total', int),
        Field('file_transfer_bytes_received_total', 'connection_filetransfer_bytes_received_total', int),
        Field('packets_sent_total', 'connection_packets_sent_total', int),
        Field('packets_received_total', 'connection_packets_received_total', int),
        Field('bytes_sent_total', 'connection_bytes_sent_total', int),
        Field('bytes_received_total', 'connection_bytes_received_total', int),
        Field('connected_time', 'connection_connected_time', int),
        Field('packet_loss_total', 'connection_packetloss_total', float),
        Field('ping', 'connection_ping', float),
    )


class Server(Record):
    """ A virtual server, as returned by serverlist and serverinfo. """
    fields = (
        Field('id', 'virtualserver_id', int),
        Field('port', 'virtualserver_port', int),
        Field('status', 'virtualserver_status'),
        Field('name', 'virtualserver_name'),
        Field('unique_identifier', 'virtualserver_unique_identifier'),
        Field('machine_id', 'virtualserver_machine_id'),
        Field('clients_online', 'virtualserver_clientsonline', int),
        Field('query_clients_online', 'virtualserver_queryclientsonline', int),
        Field('max_clients', 'virtualserver_maxclients', int),
        Field('uptime', 'virtualserver_uptime', int),
        Field('auto_start', 'virtualserver_autostart', bool),
        Field('created', 'virtualserver_created', Timestamp),
        Field('welcome_message', 'virtualserver_welcomemessage'),
        Field('host_message', 'virtualserver_hostmessage'),
        Field('host_button_tooltip', 'virtualserver_hostbutton_tooltip'),
        Field('host_button_url', 'virtualserver_hostbutton_url'),
        Field('flag_password', 'virtualserver_flag_password', bool),
        Field('download_quota', 'virtualserver_download_quota', int),
        Field('upload_quota', 'virtualserver_upload_quota', int),
        Field('needed_identity_security_level', 'virtualserver_needed_identity_security_level', int),
        Field('priority_speaker_dimm_modificator', 'virtualserver_priority_speaker_dimm_modificator', float),
        Field('weblist_enabled', 'virtualserver_weblist_enabled', bool),
    )


class CreatedServer(Record):
    fields = (
        Field('id', 'sid', int),
        Field('port', 'virtualserver_port', int),
        Field('token'),
    )


class Group(Record):
    """ A server group. """
    fields = (
        Field('id', 'sgid', int),
        Field('name'),
        Field('type', kind=int),
        Field('icon_id', 'iconid', int),
        Field('saved', 'savedb', bool),
        Field('sort_id', 'sortid', int),
        Field('name_mode', 'namemode', int),
        Field('modify_power', 'n_modifyp', int),
        Field('member_add_power', 'n_member_addp', int),
        Field('member_remove_power', 'n_member_removep', int),
    )


class Channel(Record):
    fields = (
        Field('id', 'cid', int),
        Field('parent_id', 'pid', int),
        Field('order', 'channel_order', int),
        Field('name', 'channel_name'),
        Field('total_clients', kind=int),
        Field('needed_subscribe_power', 'channel_needed_subscribe_power', int),
    )


class PrivilegeKey(Record):
    fields = (
        Field('token'),
        Field('type', 'token_type', int),
        Field('id1', 'token_id1', int),
        Field('id2', 'token_id2', int),
        Field('created', 'token_created', Timestamp),
        Field('description', 'token_description'),
    )


class OnlineClientGroups(Record):
    """ present when clientlist was called with -groups """
    fields = (
        Field('channel_group_id', 'client_channel_group_id', int),
        Field('server_groups', 'client_servergroups', IntList),
    )


class OnlineClientInfo(Record):
    """ present when clientlist was called with -info """
    fields = (
        Field('version', 'client_version'),
        Field('platform', 'client_platform'),
    )


class OnlineClientTimes(Record):
    """ present when clientlist was called with -times """
    fields = (
        Field('idle_time', 'client_idle_time', int),
        Field('created', 'client_created', Timestamp),
        Field('last_connected', 'client_lastconnected', Timestamp),
    )


class OnlineClientVoice(Record):
    """ present when clientlist was called with -voice """
    fields = (
        Field('flag_talking', 'client_flag_talking', bool),
        Field('input_muted', 'client_input_muted', bool),
        Field('output_muted', 'client_output_muted', bool),
        Field('is_talker', 'client_is_talker', bool),
    )


class OnlineClient(Record):
    """
    A client connected to a virtual server. The optional property groups arrive flattened into the same
    record and are None when the server did not send them.
    """
    fields = (
        Field('id', 'clid', int),
        Field('channel_id', 'cid', int),
        Field('database_id', 'client_database_id', int),
        Field('nickname', 'client_nickname'),
        Field('type', 'client_type', int),
        Field('away', 'client_away', bool),
        Field('away_message', 'client_away_message'),
        Field('groups', kind=OnlineClientGroups),
        Field('info', kind=OnlineClientInfo),
        Field('times', kind=OnlineClientTimes),
        Field('voice', kind=OnlineClientVoice),
    )


class DBClient(Record):
    """ A client identity known to a virtual server. """
    fields = (
        Field('id', 'cldbid', int),
        Field('unique_identifier', 'client_unique_identifier'),
        Field('nickname', 'client_nickname'),
        Field('created', 'client_created', Timestamp),
        Field('last_connected', 'client_lastconnected', Timestamp),
        Field('connections', 'client_totalconnections', int),
    )


class ServerId(Record):
    fields = (
        Field('id', 'server_id', int),
    )


class Token(Record):
    fields = (
        Field('token'),
    )


class ServerMethods:
    """ The server command group, reached as `client.server`. """

    def __init__(self, client):
        self.client = client

    def _execute(self, command):
        return self.client.execute(command)

    def list(self, *options):
        """
        Lists the virtual servers. With EXTENDED_SERVER_LIST each server is completed with the result of info().
        """
        extended = EXTENDED_SERVER_LIST in options
        options = [o for o in options if o != EXTENDED_SERVER_LIST]
        servers = RecordList(Server)
        self._execute(Command('serverlist').with_options(*options).with_response(servers))
        if extended:
            for i, server in enumerate(servers):
                self.client.use(server.id)
                servers[i] = self.info()
        return list(servers)

    def id_get_by_port(self, port):
        result = ServerId()
        self._execute(Command('serveridgetbyport').with_args(Arg('virtualserver_port', port)).with_response(result))
        return result.id

    def info(self) -> Server:
        """ information about the selected virtual server """
        return self._decoded(Command('serverinfo'), Server())

    def instance_info(self) -> Instance:
        return self._decoded(Command('instanceinfo'), Instance())

    def connection_info(self) -> ServerConnectionInfo:
        return self._decoded(Command('serverrequestconnectioninfo'), ServerConnectionInfo())

    def edit(self, *args):
        """ changes properties of the selected virtual server, given as Arg instances """
        self._execute(Command('serveredit').with_args(*args))

    def create(self, name, *args) -> CreatedServer:
        command = Command('servercreate').with_args(Arg('virtualserver_name', name), *args)
        return self._decoded(command, CreatedServer())

    def delete(self, server_id):
        self._execute(Command('serverdelete').with_args(Arg('sid', server_id)))

    def start(self, server_id):
        self._execute(Command('serverstart').with_args(Arg('sid', server_id)))

    def stop(self, server_id):
        self._execute(Command('serverstop').with_args(Arg('sid', server_id)))

    def group_list(self):
        return self._decoded_list(Command('servergrouplist'), Group)

    def channel_list(self):
        return self._decoded_list(Command('channellist'), Channel)

    def client_list(self, *options):
        """ :param options: any of -uid -away -voice -times -groups -info -icon -country """
        return self._decoded_list(Command('clientlist').with_options(*options), OnlineClient)

    def client_db_list(self):
        return self._decoded_list(Command('clientdblist'), DBClient)

    def privilege_key_list(self):
        return self._decoded_list(Command('privilegekeylist'), PrivilegeKey)

    def privilege_key_add(self, token_type, id1, id2, *args) -> str:
        """
        Creates a privilege key. With token_type 0, id1 is a server group id. Otherwise id1 is a channel group id
        and id2 a channel id.
        """
        command = Command('privilegekeyadd').with_args(
            *args, Arg('tokentype', token_type), Arg('tokenid1', id1), Arg('tokenid2', id2))
        return self._decoded(command, Token()).token

    def _decoded(self, command, target):
        self._execute(command.with_response(target))
        return target

    def _decoded_list(self, command, record_type):
        target = RecordList(record_type)
        self._execute(command.with_response(target))
        return list(target)
