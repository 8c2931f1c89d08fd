"""Outcome classification: priority, success suppression, wording."""
import itertools

from bulkDNS.resolver.classifier import (
    classify_forward,
    classify_reverse,
    invalid_address,
    no_records_message,
)
from bulkDNS.resolver.models import AddressFamily, FailureCause, SubQueryOutcome

A = AddressFamily.A
AAAA = AddressFamily.AAAA
DUAL = (A, AAAA)


def fail(cause):
    return SubQueryOutcome.failure(cause)


def ok(*values):
    return SubQueryOutcome.success(list(values))


def test_forward_success_line():
    result = classify_forward("example.com", (A,), [ok("93.184.216.34")])
    assert result.ok
    assert result.line == "example.com=93.184.216.34"


def test_forward_nxdomain_line():
    result = classify_forward("nonexistent.invalid", (A,), [fail(FailureCause.NAME_DOES_NOT_EXIST)])
    assert result.line == "nonexistent.invalid:NXDOMAIN"


def test_dual_values_joined_in_family_order():
    result = classify_forward("example.com", DUAL, [ok("1.2.3.4", "5.6.7.8"), ok("::1")])
    assert result.line == "example.com=1.2.3.4,5.6.7.8,::1"


def test_success_suppresses_every_sibling_failure():
    for cause in FailureCause:
        result = classify_forward("example.com", DUAL, [fail(cause), ok("2606:2800:220:1:248:1893:25c8:1946")])
        assert result.line == "example.com=2606:2800:220:1:248:1893:25c8:1946"
        result = classify_forward("example.com", DUAL, [ok("93.184.216.34"), fail(cause)])
        assert result.line == "example.com=93.184.216.34"


def test_nxdomain_beats_nodata_and_temporary():
    for other in (FailureCause.NO_DATA, FailureCause.TIMEOUT, FailureCause.SERVER_FAILURE, FailureCause.OTHER):
        for pair in itertools.permutations([fail(FailureCause.NAME_DOES_NOT_EXIST), fail(other)]):
            assert classify_forward("x.test", DUAL, list(pair)).line == "x.test:NXDOMAIN"


def test_temporary_beats_nodata():
    for cause in (FailureCause.TIMEOUT, FailureCause.SERVER_FAILURE, FailureCause.OTHER):
        for pair in itertools.permutations([fail(FailureCause.NO_DATA), fail(cause)]):
            assert classify_forward("x.test", DUAL, list(pair)).line == "x.test:Temporary error"


def test_nodata_wording_depends_on_families():
    nodata = fail(FailureCause.NO_DATA)
    assert classify_forward("x.test", (A,), [nodata]).line == "x.test:No A records found"
    assert classify_forward("x.test", (AAAA,), [nodata]).line == "x.test:No AAAA records found"
    assert classify_forward("x.test", DUAL, [nodata, nodata]).line == "x.test:No records found"
    assert no_records_message(DUAL) == "No records found"


def test_empty_answer_is_nodata():
    assert not ok().ok
    assert classify_forward("x.test", (A,), [ok()]).line == "x.test:No A records found"


def test_no_outcomes_is_generic_no_records():
    assert classify_forward("x.test", (), []).line == "x.test:No records found"


def test_reverse_first_hostname_wins():
    result = classify_reverse("8.8.8.8", ok("dns.google", "other.example"))
    assert result.line == "8.8.8.8=dns.google"


def test_reverse_failures():
    assert classify_reverse("1.2.3.4", fail(FailureCause.NAME_DOES_NOT_EXIST)).line == "1.2.3.4:NXDOMAIN"
    assert classify_reverse("1.2.3.4", fail(FailureCause.NO_DATA)).line == "1.2.3.4:No records found"
    assert classify_reverse("1.2.3.4", fail(FailureCause.SERVER_FAILURE)).line == "1.2.3.4:Temporary error"
    assert classify_reverse("1.2.3.4", fail(FailureCause.TIMEOUT)).line == "1.2.3.4:Temporary error"


def test_input_with_separators_is_kept_verbatim():
    assert invalid_address("a:b=c").line == "a:b=c:Invalid IP address format"
    assert classify_forward("a=b", (A,), [ok("1.1.1.1")]).line == "a=b=1.1.1.1"
