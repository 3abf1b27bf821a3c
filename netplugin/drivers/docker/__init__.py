from netplugin.drivers.docker.docker import DockerDriver

__all__ = ["DockerDriver"]
