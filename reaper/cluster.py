# reaper/cluster.py
# Cluster capability surface over the official kubernetes client: list pods/nodes, delete, evict, taint.

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
import logging

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException
import urllib3

from .errors import BootstrapError, ClusterError
from .model import ALL_NAMESPACES, NodeSnapshot, PodSnapshot, Taint

logger = logging.getLogger(__name__)


# ---------- API object -> snapshot ----------

def _aware(ts: Optional[datetime]) -> datetime:
    if ts is None:
        # objects always carry a creation timestamp; treat a missing one as "just created"
        return datetime.now(timezone.utc)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def pod_from_api(pod: Any) -> PodSnapshot:
    meta = pod.metadata
    status = pod.status
    return PodSnapshot(
        namespace=meta.namespace or "",
        name=meta.name,
        created_at=_aware(meta.creation_timestamp),
        annotations=dict(meta.annotations or {}),
        reason=(getattr(status, "reason", None) or "") if status is not None else "",
    )


def node_from_api(node: Any) -> NodeSnapshot:
    meta = node.metadata
    spec = node.spec
    taints = tuple(
        Taint(key=t.key, effect=t.effect, value=t.value or "")
        for t in ((spec.taints if spec is not None else None) or [])
    )
    return NodeSnapshot(
        name=meta.name,
        created_at=_aware(meta.creation_timestamp),
        labels=dict(meta.labels or {}),
        taints=taints,
    )


def _taint_body(t: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"key": t.key, "effect": t.effect}
    if t.value:
        body["value"] = t.value
    time_added = getattr(t, "time_added", None)
    if time_added is not None:
        body["timeAdded"] = time_added.isoformat()
    return body


# ---------- client ----------

class KubeCluster:
    """
    The only place that talks to the API server. Every method either returns
    plain snapshots or raises ClusterError; kubernetes/urllib3 exceptions never
    leak to the reconcilers.
    """

    def __init__(self, core: Any) -> None:
        self.core = core

    def _call(self, op: str, target: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return fn(*args, **kwargs)
        except ApiException as e:
            raise ClusterError(op, target, str(e.reason or e), status=e.status) from e
        except urllib3.exceptions.HTTPError as e:
            raise ClusterError(op, target, str(e)) from e

    # --- reads ---

    def list_pods(self, namespace: str) -> List[PodSnapshot]:
        if namespace == ALL_NAMESPACES:
            resp = self._call("list pods", "<all namespaces>", self.core.list_pod_for_all_namespaces)
        else:
            resp = self._call("list pods", namespace, self.core.list_namespaced_pod, namespace)
        return [pod_from_api(p) for p in (resp.items or [])]

    def list_nodes(self) -> List[NodeSnapshot]:
        resp = self._call("list nodes", "<cluster>", self.core.list_node)
        return [node_from_api(n) for n in (resp.items or [])]

    # --- mutations ---

    def delete_pod(self, namespace: str, name: str) -> None:
        self._call("delete pod", f"{namespace}/{name}", self.core.delete_namespaced_pod, name, namespace)

    def evict_pod(self, namespace: str, name: str) -> None:
        body = client.V1Eviction(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            delete_options=client.V1DeleteOptions(),
        )
        # the eviction subresource lives on the core API, not on policy/v1
        self._call(
            "evict pod", f"{namespace}/{name}",
            self.core.create_namespaced_pod_eviction, name, namespace, body,
        )

    def add_or_update_taint(self, node_name: str, taint: Taint) -> bool:
        """
        Ensure `taint` is on the node. A taint with the same key and effect but
        another value is replaced. Returns False when the node already had it
        (no patch is sent), True when the node was patched.
        """
        node = self._call("read node", node_name, self.core.read_node, node_name)
        current = list((node.spec.taints if node.spec is not None else None) or [])

        updated: List[Dict[str, Any]] = []
        found = changed = False
        for t in current:
            if t.key == taint.key and t.effect == taint.effect:
                found = True
                if (t.value or "") == taint.value:
                    updated.append(_taint_body(t))
                else:
                    updated.append(taint.to_dict())
                    changed = True
            else:
                updated.append(_taint_body(t))
        if not found:
            updated.append(taint.to_dict())
            changed = True
        if not changed:
            return False

        self._call("patch node", node_name, self.core.patch_node, node_name, {"spec": {"taints": updated}})
        return True

    def server_version(self) -> str:
        info = self._call("get version", "<cluster>", client.VersionApi(self.core.api_client).get_code)
        return getattr(info, "git_version", "") or ""


# ---------- bootstrap ----------

def connect(*, in_cluster: bool, kubeconfig: str = "", verify: bool = True) -> KubeCluster:
    """
    Load credentials (service account when in_cluster, kubeconfig otherwise)
    and build the API client. Any failure here is a BootstrapError.
    """
    try:
        if in_cluster:
            logger.debug("Loading kubeconfig from in cluster config")
            config.load_incluster_config()
        else:
            logger.info("Loading kubeconfig from %s", kubeconfig or "<default>")
            config.load_kube_config(config_file=kubeconfig or None)
    except (ConfigException, OSError) as e:
        raise BootstrapError(f"cannot load cluster credentials: {e}") from e

    api = client.ApiClient()
    cluster = KubeCluster(client.CoreV1Api(api))
    if verify:
        try:
            version = cluster.server_version()
        except ClusterError as e:
            raise BootstrapError(f"cluster API unreachable: {e}") from e
        logger.info("Connected to cluster API %s", version or "<unknown version>")
    return cluster


__all__ = ["KubeCluster", "connect", "pod_from_api", "node_from_api"]
