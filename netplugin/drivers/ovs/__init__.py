from netplugin.drivers.ovs.ovs import OvsDriver

__all__ = ["OvsDriver"]
