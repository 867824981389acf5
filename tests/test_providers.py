"""Tests for PsutilProvider against the real host."""

import socket
from collections import namedtuple
from unittest.mock import patch

import psutil

from sysdash.assembler import SnapshotAssembler
from sysdash.models import CpuTickSample, ProcessSnapshot
from sysdash.providers import PsutilProvider


class TestPsutilProvider:
    """Smoke tests reading the machine the tests run on."""

    def test_system_info(self):
        info = PsutilProvider().system_info()

        assert info.hostname == socket.gethostname()
        assert info.home_directory
        assert info.tmp_directory

    def test_cpu_samples(self):
        samples = PsutilProvider().cpu_samples()

        assert len(samples) == len(psutil.cpu_times(percpu=True))
        for sample in samples:
            assert isinstance(sample, CpuTickSample)
            assert "idle" in sample.times
            assert "guest" not in sample.times
            assert all(isinstance(v, int) for v in sample.times.values())
            assert sum(sample.times.values()) >= sample.times["idle"]

    def test_cpu_ticks_are_monotonic(self):
        provider = PsutilProvider()
        first = provider.cpu_samples()
        second = provider.cpu_samples()

        for a, b in zip(first, second):
            assert b.times["idle"] >= a.times["idle"]
            assert sum(b.times.values()) >= sum(a.times.values())

    def test_memory(self):
        memory = PsutilProvider().memory()

        assert memory.total > 0
        assert 0 <= memory.free <= memory.total

    def test_uptime_is_positive(self):
        assert PsutilProvider().uptime().seconds > 0

    def test_load_average(self):
        load = PsutilProvider().load_average()

        assert load.one >= 0 and load.five >= 0 and load.fifteen >= 0

    def test_load_average_unsupported_is_zero(self):
        with patch("sysdash.providers.psutil.getloadavg", side_effect=OSError("unsupported")):
            load = PsutilProvider().load_average()

        assert (load.one, load.five, load.fifteen) == (0.0, 0.0, 0.0)

    def test_disk_usage(self):
        disk = PsutilProvider().disk_usage()

        assert disk.total > 0
        assert 0 <= disk.used_percent <= 100

    def test_network_interfaces(self):
        interfaces = PsutilProvider().network_interfaces()

        for iface in interfaces:
            assert iface.family in ("IPv4", "IPv6")
            assert "%" not in iface.address
        loopback = [i for i in interfaces if i.address == "127.0.0.1"]
        if loopback:
            assert loopback[0].internal is True
            assert loopback[0].cidr == "127.0.0.1/8"

    def test_network_interface_cidr(self):
        snicaddr = namedtuple("snicaddr", "family address netmask broadcast ptp")
        fake = {
            "eth0": [
                snicaddr(psutil.AF_LINK, "02:42:ac:11:00:02", None, None, None),
                snicaddr(socket.AF_INET, "10.0.0.5", "255.255.255.0", None, None),
                snicaddr(socket.AF_INET6, "fe80::1%eth0", "ffff:ffff:ffff:ffff::", None, None),
            ]
        }
        with patch("sysdash.providers.psutil.net_if_addrs", return_value=fake):
            interfaces = PsutilProvider().network_interfaces()

        assert [i.cidr for i in interfaces] == ["10.0.0.5/24", "fe80::1/64"]
        assert all(i.mac == "02:42:ac:11:00:02" for i in interfaces)
        assert not any(i.internal for i in interfaces)

    def test_processes(self):
        processes = PsutilProvider().processes()

        assert len(processes) > 0
        for proc in processes[:5]:
            assert isinstance(proc, ProcessSnapshot)
            assert isinstance(proc.name, str)
            assert isinstance(proc.username, str)
            assert isinstance(proc.cpu_percent, float)
            assert isinstance(proc.memory_percent, float)

    def test_full_cycle_on_real_host(self):
        assembler = SnapshotAssembler(PsutilProvider())
        try:
            first = assembler.collect()
            second = assembler.collect()
        finally:
            assembler.close()

        assert first.cpu.usage == 0
        assert second.cpu.cores >= 1
        assert 0 <= second.health.score <= 100
        assert len(second.history) == 2
