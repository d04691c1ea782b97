"""WireGuard configuration rendering for UDP port tunnels."""

from obscura_api.api.models import WgClientConfig, WgServerConfig

ALLOWED_IPS = "0.0.0.0/0,::0/0"


def build_wg_conf(
    tunnel_id: str | None,
    secret_key_base64: str,
    client: WgClientConfig,
    server: WgServerConfig,
) -> str:
    """Render a wg-quick style configuration for a tunnel.

    All traffic is routed through the tunnel, using the first server endpoint.

    Args:
        tunnel_id: Tunnel ID written as a comment, if given
        secret_key_base64: Client WireGuard private key (base64)
        client: Client side of the tunnel configuration
        server: Server side of the tunnel configuration

    Returns:
        str: Configuration text

    Raises:
        ValueError: If the server configuration has no endpoints
    """
    if not server.endpoints:
        msg = "server configuration has no endpoints"
        raise ValueError(msg)

    lines = ["[Interface]"]
    if tunnel_id is not None:
        lines.append(f"# Obscura tunnel ID: {tunnel_id}")
    lines.append(f"PrivateKey = {secret_key_base64}")
    lines.append(f"Address = {','.join(str(address) for address in client.addresses)}")
    lines.append(f"DNS = {','.join(str(dns) for dns in server.dnses)}")
    lines.append("")
    lines.append("[Peer]")
    lines.append(f"PublicKey = {server.wg_pubkey}")
    lines.append(f"AllowedIPs = {ALLOWED_IPS}")
    lines.append(f"Endpoint = {server.endpoints[0]}")
    return "\n".join(lines) + "\n"
