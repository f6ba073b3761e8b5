# run_locust.py
"""
Lanza locustfile.py contra la API de Study Groups.

Env (opcionales):
  STUDYGROUPS_HOST  default: http://localhost:5000
  USERS             default: 50
  SPAWN_RATE        default: 5
  DURATION          default: 2m
  TAGS              default: (todas)  read,groups,chat
  HEADLESS          default: 1        (0 abre la UI web en :8089)

Ejemplo:
  TAGS=read,chat USERS=100 python run_locust.py
"""

import os
import shutil
import subprocess
import sys
from datetime import datetime

KNOWN_TAGS = ("read", "groups", "chat")


def build_args():
    host = os.getenv("STUDYGROUPS_HOST", "http://localhost:5000")
    args = ["locust", "-f", "locustfile.py", "--host", host]

    tags = [t.strip() for t in os.getenv("TAGS", "").split(",") if t.strip()]
    unknown = [t for t in tags if t not in KNOWN_TAGS]
    if unknown:
        sys.exit(f"Tags desconocidos: {', '.join(unknown)} (usa {', '.join(KNOWN_TAGS)})")
    if tags:
        args += ["--tags", *tags]

    if os.getenv("HEADLESS", "1").strip() not in ("0", "false", "no"):
        report = f"locust_{datetime.now():%Y%m%d_%H%M%S}"
        args += [
            "--headless",
            "-u", os.getenv("USERS", "50"),
            "-r", os.getenv("SPAWN_RATE", "5"),
            "-t", os.getenv("DURATION", "2m"),
            "--html", f"{report}.html",
            "--csv", report,
        ]
    return args


def main():
    if shutil.which("locust") is None:
        sys.exit("locust no está instalado: pip install -e '.[load]'")
    args = build_args()
    print("Running:", " ".join(args))
    sys.exit(subprocess.call(args))


if __name__ == "__main__":
    main()
