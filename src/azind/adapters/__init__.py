"""Adapters from external log dumps to domain records."""

from azind.adapters.rpc_logs import RpcLog, load_rpc_logs, raw_log_from_rpc

__all__ = ["RpcLog", "load_rpc_logs", "raw_log_from_rpc"]
