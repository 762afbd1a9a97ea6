# main.py
# Entry point: resolve config, connect to the cluster, start the health/metrics server, run ticks.

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import Callable, Optional, Sequence

from observability import metrics
from observability.health_server import start_health_server
from reaper.abort import Abort, exit_process
from reaper.cluster import connect
from reaper.config import ReaperConfig
from reaper.errors import BootstrapError, ConfigError, FatalReapError
from reaper.nodes import NodeLifetimeReconciler
from reaper.pods import PodLifetimeReconciler
from reaper.tick import TickDriver

logger = logging.getLogger("pod_reaper")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="pod-reaper",
        description="Reap pods past their lifetime annotation and taint old spot nodes.",
    )
    p.add_argument(
        "--kubeconfig",
        default=None,
        help="(optional) absolute path to the kubeconfig file (default: $HOME/.kube/config; ignored when REMOTE_EXEC=true)",
    )
    return p


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr, force=True)


def _install_signal_handlers(driver: TickDriver) -> None:
    def _on_signal(signum, _frame):
        logger.info("received %s, stopping after the current tick", signal.Signals(signum).name)
        driver.stop()

    signal.signal(signal.SIGTERM, _on_signal)
    signal.signal(signal.SIGINT, _on_signal)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    connect_fn: Callable[..., object] = connect,
    serve_fn: Callable[..., tuple] = start_health_server,
    abort: Optional[Abort] = None,
    install_signals: bool = True,
) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    # ---------- config ----------
    try:
        cfg = ReaperConfig.from_env(kubeconfig=args.kubeconfig)
    except ConfigError as e:
        logger.critical("invalid configuration: %s", e)
        return 1
    logging.getLogger().setLevel(cfg.LOG_LEVEL)

    logger.info("Pod reaper smiles at all pods; all a pod can do is smile back.")
    logger.info("You can run but you can't hide!")
    logger.info("config: %s", cfg.describe())
    if not cfg.REAP_EVICTED_PODS:
        logger.debug("REAP_EVICTED_PODS not set. Not reaping evicted pods.")

    # ---------- cluster ----------
    try:
        cluster = connect_fn(in_cluster=cfg.REMOTE_EXEC, kubeconfig=cfg.KUBECONFIG)
    except BootstrapError as e:
        logger.critical("bootstrap failed: %s", e)
        return 1

    # ---------- health + metrics endpoint ----------
    try:
        _thread, httpd, url = serve_fn(port=cfg.HTTP_PORT)
    except OSError as e:
        logger.critical("failed to start server at port %d: %s", cfg.HTTP_PORT, e)
        return 1
    logger.info("health on %s, metrics on %smetrics", url, url)

    # ---------- reconcilers ----------
    sink = metrics.PrometheusSink()
    driver = TickDriver(
        cfg,
        PodLifetimeReconciler(cluster, sink),
        NodeLifetimeReconciler(cluster, sink),
        tick_counter=metrics.ticks_total,
    )
    abort = abort or Abort(kill=exit_process, counter=metrics.aborts_total)
    if install_signals:
        _install_signal_handlers(driver)

    try:
        driver.run()
    except FatalReapError as e:
        abort.trigger(e.reason, str(e))
        return 1
    finally:
        httpd.shutdown()
        logger.info("shutdown complete after %d ticks", driver.health()["ticks"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
