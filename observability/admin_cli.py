"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
import json
import sqlite3

from config.settings import settings


def tail_sessions(limit: int = 20) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        cursor = conn.cursor()
        cursor.execute(
            """
            SELECT updated_at, session_id, candidate_id, status, superseded, final_score
            FROM interview_sessions
            ORDER BY updated_at DESC, rowid DESC
            LIMIT ?
            """,
            (limit,),
        )
        for row in cursor.fetchall():
            ts, session_id, candidate_id, status, superseded, final_score = row
            retired = " (restarted)" if superseded else ""
            score = "-" if final_score is None else final_score
            print(f"[{ts}] {session_id}/{candidate_id} {status}{retired} score={score}")
    finally:
        conn.close()


def show_session(session_id: str) -> None:
    conn = sqlite3.connect(settings.DB_PATH)
    try:
        row = conn.execute(
            "SELECT payload_json FROM interview_sessions WHERE session_id = ?",
            (session_id,),
        ).fetchone()
    finally:
        conn.close()
    if row is None:
        print(f"session {session_id} not found")
        return
    payload = json.loads(row[0])
    print(f"{payload['session_id']} candidate={payload['candidate_id']} status={payload['status']}")
    for slot in payload["questions"]:
        answered = "answered" if slot["scored"] else "open"
        timed_out = " timed-out" if slot["timed_out"] else ""
        print(f"  Q{slot['ordinal'] + 1} [{answered}{timed_out}] score={slot['score']} {slot['question_text'][:60]}")
    if payload.get("final_score") is not None:
        print(f"final={payload['final_score']} recommendation={payload.get('recommendation')}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--tail-sessions", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--show", metavar="SESSION_ID", help="Print one session's question slots")
    args = parser.parse_args()

    if args.tail_sessions:
        tail_sessions(args.tail_sessions)
    if args.show:
        show_session(args.show)


if __name__ == "__main__":
    main()
