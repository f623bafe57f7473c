"""Tests for gate coercion and module enable/disable resolution."""

from __future__ import annotations

import pytest

from ts_autoinstall.checks import ABSENT, Check, CheckKind, Context, coerce_check
from ts_autoinstall.config import ModuleConfig
from ts_autoinstall.policy import is_module_enabled

CTX = Context(document=1, filetype="markdown", lang="markdown")


def _module(enable=None, disable=None, keyed_by="lang"):
    return ModuleConfig(coerce_check(enable), coerce_check(disable), keyed_by)


def _enabled(enable=None, disable=None, ctx=CTX, keyed_by="lang"):
    return is_module_enabled(_module(enable, disable, keyed_by), ctx)


def _yes(_ctx):
    return True


def _no(_ctx):
    return False


# ===========================================================================
# coerce_check
# ===========================================================================


class TestCoerceCheck:
    def test_none_is_absent(self):
        assert coerce_check(None) is ABSENT

    def test_bool_is_flag(self):
        assert coerce_check(True) == Check.flag(True)
        assert coerce_check(False).kind is CheckKind.FLAG

    def test_mapping_is_copied(self):
        raw = {"lua": True}
        check = coerce_check(raw)
        raw["lua"] = False
        assert check.kind is CheckKind.MAPPING
        assert check.lists("lua")

    def test_callable_is_predicate(self):
        assert coerce_check(_yes).kind is CheckKind.PREDICATE

    def test_existing_check_passes_through(self):
        check = Check.flag(False)
        assert coerce_check(check) is check

    @pytest.mark.parametrize("raw", ["yes", 1, 0.5, ["lua"]])
    def test_other_shapes_are_malformed(self, raw):
        assert coerce_check(raw).kind is CheckKind.MALFORMED

    def test_specificity_order(self):
        assert CheckKind.ABSENT < CheckKind.FLAG < CheckKind.MAPPING < CheckKind.PREDICATE


# ===========================================================================
# enable absent
# ===========================================================================


class TestEnableAbsent:
    def test_no_disable_is_enabled(self):
        assert _enabled() is True

    def test_disable_false(self):
        assert _enabled(disable=False) is True

    def test_disable_true(self):
        assert _enabled(disable=True) is False

    def test_disable_mapping(self):
        assert _enabled(disable={"markdown": True}) is False
        assert _enabled(disable={"lua": True}) is True

    def test_disable_predicate(self):
        assert _enabled(disable=_yes) is False
        assert _enabled(disable=_no) is True


# ===========================================================================
# enable flag
# ===========================================================================


class TestEnableFlag:
    def test_true_false(self):
        assert _enabled(True, False) is True

    def test_true_true_disable_wins(self):
        assert _enabled(True, True) is False

    def test_false_false_stays_false(self):
        assert _enabled(False, False) is False

    def test_false_alone(self):
        assert _enabled(False) is False

    def test_disable_mapping_overrides(self):
        assert _enabled(True, {"markdown": 1}) is False
        assert _enabled(True, {"lua": True}) is True

    def test_disable_predicate_overrides(self):
        assert _enabled(True, _yes) is False
        assert _enabled(True, _no) is True


# ===========================================================================
# enable mapping
# ===========================================================================


class TestEnableMapping:
    def test_listed_language(self):
        assert _enabled({"markdown": True}) is True

    def test_unlisted_language(self):
        assert _enabled({"lua": True}) is False

    def test_entry_must_be_exactly_true(self):
        assert _enabled({"markdown": 1}) is False

    def test_boolean_disable_is_ignored(self):
        assert _enabled({"markdown": True}, True) is True
        assert _enabled({"lua": True}, False) is False

    def test_mapping_disable_overrides(self):
        assert _enabled({"markdown": True}, {"markdown": True}) is False

    def test_predicate_disable_overrides(self):
        assert _enabled({"markdown": True}, _yes) is False
        assert _enabled({"markdown": True}, _no) is True


# ===========================================================================
# enable predicate
# ===========================================================================


class TestEnablePredicate:
    def test_evaluates_predicate(self):
        assert _enabled(_yes) is True
        assert _enabled(_no) is False

    def test_predicate_receives_context(self):
        seen = []
        _enabled(lambda ctx: seen.append(ctx) or True)
        assert seen == [CTX]

    def test_falsy_result_is_false(self):
        assert _enabled(lambda _ctx: None) is False

    def test_less_specific_disables_ignored(self):
        assert _enabled(_yes, True) is True
        assert _enabled(_yes, {"markdown": True}) is True

    def test_predicate_disable_overrides(self):
        assert _enabled(_yes, _yes) is False


# ===========================================================================
# keyed_by / malformed
# ===========================================================================


class TestKeyingAndMalformed:
    def test_filetype_keyed_mapping(self):
        ctx = Context(document=1, filetype="typescriptreact", lang="tsx")
        assert _enabled({"typescriptreact": True}, ctx=ctx, keyed_by="filetype") is True
        assert _enabled({"tsx": True}, ctx=ctx, keyed_by="filetype") is False
        assert _enabled({"tsx": True}, ctx=ctx) is True

    def test_malformed_enable_falls_back_to_enabled(self):
        assert _enabled("sometimes") is True
        assert _enabled("sometimes", True) is True

    def test_malformed_disable_is_ignored(self):
        assert _enabled(True, "always") is True
        assert _enabled(None, "always") is True

    def test_resolution_is_repeatable(self):
        module = _module({"markdown": True}, _no)
        assert [is_module_enabled(module, CTX) for _ in range(3)] == [True, True, True]
