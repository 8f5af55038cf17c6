# tests/test_sign_claim_cli.py
"""Tests for the claim signing command."""

import json

from claim_gate.core.claims import Claim, build_fields
from claim_gate.core.signatures import decode_hex
from claim_gate.scripts.sign_claim import main
from claim_gate.services.admin import default_config
from claim_gate.services.verifier import ClaimAuthorizationVerifier
from tests.helpers import ACTOR, SIGNER_ADDRESS, SIGNER_KEY, T0, unique_id


def _run(capsys, *extra: str) -> tuple[int, str, str]:
    argv = [
        "--flow", "reward",
        "--private-key", SIGNER_KEY.hex(),
        "--actor", ACTOR,
        "--magnitude", "100",
        "--unique-id", unique_id("cli"),
        "--nonce", "0",
        *extra,
    ]
    code = main(argv)
    out = capsys.readouterr()
    return code, out.out, out.err


def test_signs_verifiable_envelope(capsys) -> None:
    code, out, _ = _run(capsys, "--expiry", str(T0 + 300))
    assert code == 0
    assert f"signer:       {SIGNER_ADDRESS}" in out

    payload = json.loads(out[out.index("{"):])
    assert payload["actor"] == ACTOR
    assert payload["expiry"] == T0 + 300

    fields = build_fields(ACTOR, 100, unique_id("cli"), 0, T0 + 300)
    claim = Claim(fields=fields, signature=decode_hex(payload["signature"], 65))
    config = default_config()
    config.authorized_signer = SIGNER_ADDRESS
    ClaimAuthorizationVerifier.for_flow("reward").verify(claim, config, T0)


def test_rejects_bad_input(capsys) -> None:
    code, _, err = _run(capsys, "--expiry", str(T0), "--private-key", "zz")
    assert code == 2
    assert err.startswith("error:")


def test_unsignable_values_exit_cleanly(capsys) -> None:
    code, _, err = _run(capsys, "--expiry", str(T0), "--magnitude", "-5")
    assert code == 2
    assert err.startswith("error:")

    code, _, err = _run(capsys, "--expiry", str(T0), "--private-key", "ff" * 32)
    assert code == 2
    assert err.startswith("error:")
