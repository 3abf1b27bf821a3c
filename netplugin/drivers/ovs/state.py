"""State records shared through the state driver.

Config records are intent written by the network administrator tooling;
oper records are written by the ovs driver once the intent is realized.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

CFG_NETWORK_PREFIX = "/contiv/config/nets/"
CFG_ENDPOINT_PREFIX = "/contiv/config/eps/"
OPER_NETWORK_PREFIX = "/contiv/oper/nets/"
OPER_ENDPOINT_PREFIX = "/contiv/oper/eps/"


def cfg_network_key(network_id: str) -> str:
    return f"{CFG_NETWORK_PREFIX}{network_id}"


def cfg_endpoint_key(ep_id: str) -> str:
    return f"{CFG_ENDPOINT_PREFIX}{ep_id}"


def oper_network_key(network_id: str) -> str:
    return f"{OPER_NETWORK_PREFIX}{network_id}"


def oper_endpoint_key(ep_id: str) -> str:
    return f"{OPER_ENDPOINT_PREFIX}{ep_id}"


class OvsCfgNetworkState(BaseModel):
    id: str
    pkt_tag: int = Field(ge=1, le=4094)  # VLAN tag
    subnet: str = ""
    subnet_len: int = 0
    default_gw: str = ""


class OvsCfgEndpointState(BaseModel):
    id: str
    net_id: str
    container_name: str = ""
    attach_uuid: str = ""  # Container the endpoint should be attached to
    ip_address: str = ""


class OvsOperNetworkState(BaseModel):
    id: str
    pkt_tag: int
    subnet: str = ""
    subnet_len: int = 0
    default_gw: str = ""


class OvsOperEndpointState(BaseModel):
    id: str
    net_id: str
    port_name: str
    container_name: str = ""
    attach_uuid: str = ""  # Container the endpoint is attached to right now
    ip_address: str = ""
