#!/usr/bin/env python
"""Script de diagnóstico do guard com relógio simulado.

Executa:
1. Conversa normal (mensagens espaçadas)
2. Rajada acima do rate limit
3. Repetição imediata que leva a bloqueio
4. Estatísticas agregadas após sweep

Uso:
    python scripts/simulate_abuse_flow.py
"""

import sys
from pathlib import Path

# Adicionar src ao path
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from chatguard.application.admin import GuardAdmin
from chatguard.application.engine import AbuseGuard
from chatguard.application.sweeper import CleanupSweeper
from chatguard.infra.session_store import InMemorySessionStore

START = 1_700_000_000.0


def _print_verdict(label, verdict):
    status = "✅" if verdict.allowed else "❌"
    print(
        f"{status} {label}: score={verdict.suspicion_score} "
        f"reason={verdict.reason} wait={verdict.wait_seconds}"
    )


def run_normal_conversation(guard):
    print("\n--- Conversa normal ---")
    questions = [
        "Hello, is the apartment on Main street still available",
        "What is the price per square meter",
        "Can I schedule a visit next week",
    ]
    for i, text in enumerate(questions):
        _print_verdict(f"msg {i + 1}", guard.evaluate(text, "normal-user", now=START + i * 30))


def run_burst(guard):
    print("\n--- Rajada (rate limit) ---")
    for i in range(12):
        verdict = guard.evaluate(f"question about flat number {i}", "burst-user", now=START + i * 2)
        _print_verdict(f"msg {i + 1}", verdict)


def run_repeat_block(guard):
    print("\n--- Repetição imediata ---")
    _print_verdict("primeira", guard.evaluate("aaaaaaaaaaaa", "spam-user", now=START))
    _print_verdict("repetida", guard.evaluate("aaaaaaaaaaaa", "spam-user", now=START + 0.5))
    _print_verdict("após 1 min", guard.evaluate("hello again", "spam-user", now=START + 60))


def main():
    store = InMemorySessionStore()
    guard = AbuseGuard(store)
    admin = GuardAdmin(store, CleanupSweeper(store))

    run_normal_conversation(guard)
    run_burst(guard)
    run_repeat_block(guard)

    print("\n--- Estatísticas ---")
    print(admin.stats(now=START + 120).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
