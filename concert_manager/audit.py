import csv
import os
from datetime import datetime
from typing import List

from concert_manager.log import get_logger

logger = get_logger(__name__)

TRANSACTION_HEADER = ['timestamp', 'username', 'concert_id', 'ticket_id',
                      'action', 'status', 'amount', 'message']


class TransactionLog:
    """Appends box-office transactions to a CSV file."""

    def __init__(self, file_path: str):
        self.file_path = file_path

    def initialize(self):
        """Create the file with its header row if it does not exist."""
        if os.path.exists(self.file_path):
            return
        directory = os.path.dirname(self.file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.file_path, 'w', newline='') as f:
            csv.writer(f).writerow(TRANSACTION_HEADER)

    def log_transaction(self, username: str, concert_id, ticket_id, action: str,
                        status: str, amount: float, message: str):
        """
        Append one row.

        Parameters:
        - action: "purchase", "cancel", "check_in"
        - status: "success" or "failed"
        - amount: transaction amount
        """
        try:
            self.initialize()
            with open(self.file_path, 'a', newline='') as f:
                writer = csv.writer(f)
                writer.writerow([
                    datetime.now().isoformat(),
                    username,
                    "" if concert_id is None else concert_id,
                    "" if ticket_id is None else ticket_id,
                    action,
                    status,
                    f"{amount:.2f}",
                    message
                ])
        except OSError as e:
            logger.warning("transaction_log_failed", path=self.file_path, error=str(e))

    def read_transactions(self) -> List[dict]:
        """All logged rows, oldest first. Empty when the file does not exist."""
        try:
            with open(self.file_path, 'r', newline='') as f:
                return list(csv.DictReader(f))
        except FileNotFoundError:
            return []
