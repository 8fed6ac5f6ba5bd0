#!/usr/bin/env python3
"""
MikroTik Dashboard Diagnostic Script
Connects to a router with the dashboard client and prints what the dashboard
would show: resources, interfaces with live traffic, PPPoE and static counts.
"""

import argparse
import logging
import sys

from app.config import settings
from app.services import mikrotik_dashboard as ops
from app.services.mikrotik_api import MikroTikAPI, RouterOSError


# Color codes for terminal output
class Colors:
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    CYAN = '\033[96m'
    BOLD = '\033[1m'
    END = '\033[0m'


def print_header(text):
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{text}{Colors.END}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.END}")


def print_warning(text):
    print(f"{Colors.YELLOW}⚠ WARNING: {text}{Colors.END}")


def print_error(text):
    print(f"{Colors.RED}✗ PROBLEM: {text}{Colors.END}")


def print_ok(text):
    print(f"{Colors.GREEN}✓ OK: {text}{Colors.END}")


def format_bytes(value):
    """Convert a RouterOS byte count string to human readable format"""
    if value in (None, "", ops.NOT_AVAILABLE):
        return ops.NOT_AVAILABLE
    bytes_val = float(ops.to_int(value))
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_val < 1024:
            return f"{bytes_val:.2f} {unit}"
        bytes_val /= 1024
    return f"{bytes_val:.2f} PB"


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Check a MikroTik router through the dashboard client")
    parser.add_argument("--host", default=settings.MIKROTIK_HOST)
    parser.add_argument("--port", type=int, default=settings.MIKROTIK_PORT)
    parser.add_argument("--username", default=settings.MIKROTIK_USERNAME)
    parser.add_argument("--password", default=settings.MIKROTIK_PASSWORD)
    parser.add_argument("--ssl", action="store_true", help="use the api-ssl service")
    parser.add_argument("--timeout", type=float, default=settings.MIKROTIK_TIMEOUT)
    parser.add_argument("-v", "--verbose", action="store_true", help="log raw API sentences")
    return parser.parse_args(argv)


def diagnose_router(args) -> int:
    print_header("MikroTik Dashboard Diagnostics")
    print(f"Connecting to {args.host}:{args.port} as {args.username}...")

    api = MikroTikAPI(
        args.host,
        args.username,
        args.password,
        args.port,
        timeout=args.timeout,
        connect_timeout=settings.MIKROTIK_CONNECT_TIMEOUT,
        use_ssl=args.ssl,
    )
    try:
        api.connect()
    except RouterOSError as e:
        print_error(f"Failed to connect to MikroTik at {args.host}:{args.port}: {e}")
        return 1

    print_ok("Connected to MikroTik router")

    with api:
        try:
            print_header("1. System Resources")
            status = ops.get_router_status(api)
            print(f"   Board: {status.get('board-name', 'Unknown')} ({status.get('architecture-name', '')})")
            print(f"   Version: {status.get('version', 'Unknown')}")
            print(f"   Uptime: {status.get('uptime', 'Unknown')}")
            print(f"   IP address: {status['ip-address']}")
            print(f"   Memory: {format_bytes(status.get('free-memory'))} free of {format_bytes(status.get('total-memory'))}")
            print(f"   Disk: {format_bytes(status['hdd-free'])} free of {format_bytes(status['total-hdd-space'])}")
            cpu_load = ops.to_int(status.get('cpu-load'))
            if cpu_load > 80:
                print_warning(f"CPU load is {cpu_load}%")
            else:
                print_ok(f"CPU load {cpu_load}%")

            print_header("2. Interfaces")
            for iface in ops.get_router_interfaces(api):
                state = "running" if ops.to_bool(iface.get("running")) else "down"
                if ops.to_bool(iface.get("disabled")):
                    state = "disabled"
                rx = ops.bits_to_mbps(iface.get("rx-byte"))
                tx = ops.bits_to_mbps(iface.get("tx-byte"))
                print(f"   {iface.get('name', '?'):<20} {iface.get('type', ''):<10} {state:<9} rx {rx} Mbps / tx {tx} Mbps")

            print_header("3. Subscribers")
            pppoe = ops.get_pppoe_user_counts(api)
            static = ops.get_static_user_counts(api)
            print(f"   PPPoE:  {pppoe['activePppoe']} active, {pppoe['inactivePppoe']} inactive")
            print(f"   Static: {static['activeStatic']} bound, {static['inactiveStatic']} not bound")
        except RouterOSError as e:
            print_error(str(e))
            return 1

    print_ok("Diagnostics completed")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    return diagnose_router(args)


if __name__ == "__main__":
    sys.exit(main())
