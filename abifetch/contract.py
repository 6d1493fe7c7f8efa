# abifetch/contract.py
import logging
import re
import time
from typing import List, Optional, Tuple

from eth_account import Account
from web3 import Web3

from abifetch.errors import ConfigError, TransactionError
from abifetch.models import Campaign

_PRIVATE_KEY_RE = re.compile(r"^(0x)?[0-9a-fA-F]{64}$")


def campaigns_from_result(result) -> List[Campaign]:
    """
    get_campaigns() returns eight parallel arrays:
    (owners, titles, descriptions, targets, deadlines, images, donators, donations)
    """
    owners, titles, descriptions, targets, deadlines, images, donators, donations = result
    return [
        Campaign(
            campaign_id=i,
            owner=owners[i],
            title=titles[i],
            description=descriptions[i],
            target=int(targets[i]),
            deadline=int(deadlines[i]),
            image=images[i],
            donators=list(donators[i]),
            donations=[int(d) for d in donations[i]],
        )
        for i in range(len(owners))
    ]


class ContractClient:
    """A contract bound to a web3 provider and a local signing account."""

    def __init__(self, w3: Web3, account, contract):
        self.w3       = w3
        self.account  = account
        self.contract = contract

    @property
    def address(self) -> str:
        return self.account.address

    @property
    def contract_address(self) -> str:
        return self.contract.address

    # ------------------------------------------------------------------ reads
    def get_campaigns(self) -> List[Campaign]:
        return campaigns_from_result(self.contract.functions.get_campaigns().call())

    def get_donators(self, campaign_id: int) -> List[Tuple[str, int]]:
        donators, donations = self.contract.functions.get_donators(campaign_id).call()
        return [(d, int(a)) for d, a in zip(donators, donations)]

    # ----------------------------------------------------------------- writes
    def create_campaign(self, title: str, description: str, target: int,
                        deadline: int, image: str, owner: Optional[str] = None,
                        now: Optional[float] = None) -> int:
        """Create a campaign and return its id, read from the CampaignCreated log."""
        if deadline <= (time.time() if now is None else now):
            raise ValueError("The deadline must be in the future.")
        fn = self.contract.functions.create_campaign(
            owner or self.address, title, description, target, deadline, image
        )
        receipt = self._send(fn)

        # CampaignCreated(uint256 indexed campaignId, ...): id is the first indexed topic
        try:
            campaign_id = int.from_bytes(bytes(receipt["logs"][0]["topics"][1]), "big")
        except (KeyError, IndexError) as e:
            raise TransactionError(
                f"No CampaignCreated log in tx {receipt['transactionHash'].hex()}"
            ) from e
        logging.info(f"Campaign {title!r} created with id {campaign_id}")
        return campaign_id

    def donate(self, campaign_id: int, amount_wei: int):
        if amount_wei <= 0:
            raise ValueError("Donation amount must be greater than zero.")
        receipt = self._send(self.contract.functions.donate_to_campaign(campaign_id),
                             value=amount_wei)
        logging.info(f"Donated {amount_wei} wei to campaign {campaign_id}")
        return receipt

    def _send(self, fn, value: int = 0):
        tx = fn.build_transaction({
            "from": self.address,
            "nonce": self.w3.eth.get_transaction_count(self.address),
            "value": value,
        })
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        receipt = self.w3.eth.wait_for_transaction_receipt(tx_hash)
        if receipt["status"] != 1:
            raise TransactionError(f"Transaction {receipt['transactionHash'].hex()} reverted")
        return receipt


def connect(rpc_url: str, contract_address: str, abi: list, private_key: str) -> ContractClient:
    if not Web3.is_address(contract_address):
        raise ConfigError(f"Invalid contract address: {contract_address!r}")
    if not _PRIVATE_KEY_RE.match(private_key):
        raise ConfigError("Invalid private key")
    try:
        account = Account.from_key(private_key)
    except ValueError as e:
        raise ConfigError("Invalid private key") from e

    w3       = Web3(Web3.HTTPProvider(rpc_url))
    contract = w3.eth.contract(address=Web3.to_checksum_address(contract_address), abi=abi)
    return ContractClient(w3, account, contract)
