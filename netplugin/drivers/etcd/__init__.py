from netplugin.drivers.etcd.etcd import EtcdStateDriver

__all__ = ["EtcdStateDriver"]
