import asyncio
import io

import pytest

from bulkDNS.rbl.rblcheck import (
    RBLInputError,
    build_queries,
    load_zones,
    main,
    parse_zones,
    reverse_ipv4,
    run_rblcheck,
)
from bulkDNS.resolver.config import ResolutionMode, RunConfig
from bulkDNS.resolver.models import AddressFamily


def test_reverse_ipv4():
    assert reverse_ipv4("192.0.2.10") == "10.2.0.192"


@pytest.mark.parametrize("text,message", [
    ("1.2.3", "invalid IPv4 address"),
    ("1.2.3.4.5", "invalid IPv4 address"),
    ("1.2.x.4", 'error: octet "x" contains non-numeric characters'),
    ("1.2..4", 'error: octet "" contains non-numeric characters'),
    ("1.2.256.4", 'error: octet "256" out of range'),
])
def test_reverse_ipv4_rejects(text, message):
    with pytest.raises(RBLInputError) as exc:
        reverse_ipv4(text)
    assert str(exc.value) == message


def test_parse_zones_only_takes_s_directives():
    lines = ["-s zen.spamhaus.org", "# comment", "-x ignored.example", "", "-s   bl.spamcop.net  "]
    assert parse_zones(lines) == ["zen.spamhaus.org", "bl.spamcop.net"]


def test_load_zones(tmp_path):
    rc = tmp_path / "rblcheckrc"
    rc.write_text("-s zen.spamhaus.org\n")
    assert load_zones(str(rc)) == ["zen.spamhaus.org"]
    with pytest.raises(RBLInputError) as exc:
        load_zones(str(tmp_path / "nope"))
    assert "does not exist" in str(exc.value)


def test_build_queries():
    assert list(build_queries("127.0.0.2", ["a.test", "b.test"])) == [
        "2.0.0.127.a.test",
        "2.0.0.127.b.test",
    ]


def test_run_rblcheck_in_zone_order(stub_client):
    client = stub_client(
        forward={("2.0.0.127.listed.test", AddressFamily.A): ["127.0.0.2"]},
        delays={"2.0.0.127.listed.test": 0.05},
    )
    out = io.StringIO()
    config = RunConfig(mode=ResolutionMode.FORWARD_V4)
    asyncio.run(run_rblcheck("127.0.0.2", ["listed.test", "clean.test"], config, out, client=client))
    assert out.getvalue() == "2.0.0.127.listed.test=127.0.0.2\n2.0.0.127.clean.test:NXDOMAIN\n"


def test_main_missing_parameter(capsys):
    assert main([]) == 1
    assert capsys.readouterr().out == "missing parameter\n"


def test_main_bad_address(capsys, tmp_path):
    assert main(["10.0.0", "--rc", str(tmp_path / "rc")]) == 1
    assert capsys.readouterr().out == "invalid IPv4 address\n"
