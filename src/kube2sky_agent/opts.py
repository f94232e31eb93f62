"""oslo.config options for running the bridge inside an oslo service.

The standalone agent reads YAML (see :mod:`kube2sky_agent.config`); services
that already use oslo.config can register these options instead and build the
same :class:`~kube2sky_agent.config.AgentConfig` from them.
"""

from oslo_config import cfg

from kube2sky.projector import SKYDNS_PREFIX

from .config import (
    DEFAULT_DOMAIN,
    DEFAULT_ETCD_SERVER,
    AgentConfig,
    EtcdConfig,
    KubernetesConfig,
)

GROUP = 'kube2sky'

kube2sky_opts = [
    cfg.StrOpt('domain',
               default=DEFAULT_DOMAIN,
               help='Domain under which to create names.'),
    cfg.StrOpt('etcd_server',
               default=DEFAULT_ETCD_SERVER,
               help='URL to the etcd server SkyDNS reads from.'),
    cfg.StrOpt('etcd_prefix',
               default=SKYDNS_PREFIX,
               help='etcd directory holding SkyDNS records.'),
    cfg.FloatOpt('etcd_mutation_timeout',
                 default=10.0,
                 min=0.001,
                 help='Crash after retrying a single etcd mutation for this '
                      'many seconds.'),
    cfg.IntOpt('etcd_connect_retries',
               default=12,
               min=1,
               help='Number of etcd version probes before giving up at '
                    'startup.'),
    cfg.FloatOpt('etcd_connect_interval',
                 default=5.0,
                 min=0,
                 help='Seconds to wait between etcd version probes at '
                      'startup.'),
    cfg.StrOpt('kubernetes_host',
               help='Kubernetes API server URL. If not set, it is built '
                    'from KUBERNETES_RO_SERVICE_HOST/PORT.'),
    cfg.StrOpt('kubernetes_api_version',
               default='v1',
               help='Kubernetes API version used for the services '
                    'endpoints.'),
    cfg.IntOpt('resync_period',
               default=0,
               min=0,
               help='Seconds after which the API server closes each watch, '
                    'forcing a full resync. 0 disables.'),
    cfg.BoolOpt('verbose',
                default=False,
                help='Log every received update event.'),
]


def register_opts(conf):
    """Register the kube2sky options in the ``[kube2sky]`` group of ``conf``."""
    conf.register_opts(kube2sky_opts, group=GROUP)


def list_opts():
    """Entry point for oslo-config-generator."""
    return [(GROUP, kube2sky_opts)]


def config_from_conf(conf):
    """Build an :class:`AgentConfig` from a ConfigOpts with registered opts.

    Args:
        conf: an ``oslo_config.cfg.ConfigOpts`` after :func:`register_opts`

    Returns:
        AgentConfig equivalent to the YAML form
    """
    group = conf[GROUP]
    return AgentConfig(
        domain=group.domain.strip('.'),
        verbose=group.verbose,
        etcd=EtcdConfig(
            server=group.etcd_server,
            prefix=group.etcd_prefix,
            mutation_timeout=group.etcd_mutation_timeout,
            connect_retries=group.etcd_connect_retries,
            connect_interval=group.etcd_connect_interval,
        ),
        kubernetes=KubernetesConfig(
            host=group.kubernetes_host,
            api_version=group.kubernetes_api_version,
            resync_period=group.resync_period,
        ),
    )
