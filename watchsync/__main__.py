from watchsync.main import run

run()
