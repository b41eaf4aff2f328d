#!/usr/bin/env python3
# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
CloudServices Management Core - Quickstart

Walks through the two building blocks of a management client:
- Paged listing of point-to-site VPN gateways in a subscription
- Starting a long-running gateway update, persisting its descriptor and
  waiting for it to finish

Prerequisites:
- pip install -e ".[examples]"
- Azure Identity credentials configured (az login or a browser sign-in)

Usage:
    python examples/basic/quickstart.py <subscription-id> <resource-group> <gateway-name>
"""

import logging
import sys
import threading

from azure.identity import InteractiveBrowserCredential

from CloudServices.Management.client import ManagementClient
from CloudServices.Management.core.config import ManagementConfig
from CloudServices.Management.core.errors import HttpError, OperationCancelledError, OperationFailedError

BASE_URL = "https://management.azure.com"
API_VERSION = "2024-05-01"


def list_gateways(client: ManagementClient, subscription_id: str) -> None:
    print("\n📄 Listing gateways")
    print("=" * 50)
    path = f"/subscriptions/{subscription_id}/providers/Microsoft.Network/p2sVpnGateways"

    for i, page in enumerate(client.listings.list_pages(path, page_size=20), start=1):
        print(f"Page {i}: {len(page)} gateways (more: {page.has_more})")
        for gateway in page:
            print(f"  - {gateway['name']} [{gateway.get('location')}]")

    df = client.listings.to_dataframe(path, columns=["name", "location"])
    print(f"\nDataFrame with {len(df)} rows:\n{df}")


def update_gateway(client: ManagementClient, subscription_id: str, resource_group: str, name: str) -> None:
    print("\n⏳ Updating gateway tags")
    print("=" * 50)
    path = (
        f"/subscriptions/{subscription_id}/resourceGroups/{resource_group}"
        f"/providers/Microsoft.Network/p2sVpnGateways/{name}"
    )

    handle = client.operations.begin("PATCH", path, body={"tags": {"owner": "quickstart"}})
    print(f"Started: {handle!r}")

    # The descriptor can be stored and resumed by another process
    saved = handle.descriptor.to_json()
    handle = client.operations.resume(saved)

    cancel = threading.Event()
    try:
        gateway = client.operations.wait(handle, poll_interval=5, cancellation=cancel)
    except OperationFailedError as e:
        print(f"❌ Operation failed: {e.detail}")
        return
    except OperationCancelledError:
        print("⚠️  Wait cancelled; the operation continues on the service.")
        return
    print(f"✅ {gateway['name']} is {gateway['properties']['provisioningState']}")


def main() -> None:
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(1)
    subscription_id, resource_group, name = sys.argv[1:]

    logging.basicConfig(level=logging.INFO)
    config = ManagementConfig(api_version=API_VERSION)

    with ManagementClient(BASE_URL, InteractiveBrowserCredential(), config) as client:
        try:
            list_gateways(client, subscription_id)
            update_gateway(client, subscription_id, resource_group, name)
        except HttpError as e:
            print(f"❌ HTTP {e.status_code}: {e.message}")
            sys.exit(1)


if __name__ == "__main__":
    main()
