#!/usr/bin/env python3
"""
Web interface for time-locked vaults
"""

import logging

from flask import Flask, request, jsonify

from timelock.config import Config, configure_logging
from timelock.errors import VaultError, InvalidSignature
from timelock.keys import AccountKey, call_message
from timelock.service import TimeLockService

logger = logging.getLogger("timelock.web")

STATUS_BY_KIND = {
    'InvalidSchedule': 400,
    'InvalidSignature': 401,
    'Unauthorized': 403,
    'VaultNotFound': 404,
    'NotYetUnlocked': 409,
    'AlreadyWithdrawn': 409,
    'InsufficientFunds': 400,
    'TransferFailed': 502,
}

def _error(exc: VaultError):
    body = {'success': False}
    body.update(exc.to_dict())
    return jsonify(body), STATUS_BY_KIND.get(exc.kind, 400)

def _require_signature(message: bytes, signature: str, pubkey: str) -> None:
    if not signature or not AccountKey.verify_signature(message, signature, pubkey):
        raise InvalidSignature()

def _vault_info(service: TimeLockService, vault) -> dict:
    info = vault.to_dict()
    info['commitment_hash'] = vault.commitment_hash()
    info['ledger_balance'] = service.vault_balance(vault.vault_id)
    return info

def create_app(service: TimeLockService = None, config: Config = None) -> Flask:
    config = config or Config.from_env()
    configure_logging(config.log_level)

    app = Flask(__name__)
    app.secret_key = config.secret_key
    app.config['TIMELOCK'] = config
    service = service or TimeLockService()
    app.extensions['timelock_service'] = service

    @app.route('/api/accounts', methods=['POST'])
    def create_account():
        """Generate an account key pair, funded by the faucet if enabled"""
        private_hex, public_hex = AccountKey.generate_key_pair()
        if config.faucet_amount:
            service.ledger.mint(public_hex, config.faucet_amount)

        logger.info("Created account %s", public_hex[:16])
        return jsonify({
            'success': True,
            'public_key': public_hex,
            'private_key': private_hex,
            'balance': service.ledger.balance_of(public_hex)
        })

    @app.route('/api/accounts/<pubkey>')
    def get_account(pubkey):
        return jsonify({
            'public_key': pubkey,
            'balance': service.ledger.balance_of(pubkey),
            'next_nonce': service.next_nonce(pubkey),
            'next_withdraw_nonce': service.next_withdraw_nonce(pubkey),
            'vaults': [v.vault_id for v in service.list_vaults(owner=pubkey)]
        })

    @app.route('/api/vaults', methods=['POST'])
    def create_vault():
        """Create a vault signed by its creator"""
        data = request.get_json(silent=True) or {}
        try:
            creator = data['creator']
            if not isinstance(creator, str):
                raise TypeError('creator must be a public key string')
            unlock_time = int(data['unlock_time'])
            deposit = int(data.get('deposit', 0))
            nonce = int(data.get('nonce', service.next_nonce(creator)))
        except (KeyError, TypeError, ValueError) as e:
            return jsonify({'success': False, 'error': 'BadRequest', 'message': f"Invalid request: {e}"}), 400

        try:
            message = call_message('create', creator, unlock_time=unlock_time, deposit=deposit, nonce=nonce)
            _require_signature(message, data.get('signature'), creator)
            vault = service.create_vault(creator, unlock_time, deposit, expected_nonce=nonce)
        except VaultError as e:
            return _error(e)
        except ValueError as e:
            return jsonify({'success': False, 'error': 'BadRequest', 'message': str(e)}), 400

        return jsonify({'success': True, 'vault': _vault_info(service, vault)}), 201

    @app.route('/api/vaults/<vault_id>')
    def get_vault(vault_id):
        try:
            vault = service.get_vault(vault_id)
        except VaultError as e:
            return _error(e)
        return jsonify(_vault_info(service, vault))

    @app.route('/api/vaults/<vault_id>/withdraw', methods=['POST'])
    def withdraw(vault_id):
        """Withdraw a vault's balance, signed by the caller"""
        data = request.get_json(silent=True) or {}
        caller = data.get('caller')
        if not isinstance(caller, str) or not caller:
            return jsonify({'success': False, 'error': 'BadRequest', 'message': "Invalid request: missing caller"}), 400
        try:
            nonce = int(data.get('nonce', service.next_withdraw_nonce(caller)))
        except (TypeError, ValueError) as e:
            return jsonify({'success': False, 'error': 'BadRequest', 'message': f"Invalid request: {e}"}), 400

        try:
            message = call_message('withdraw', caller, vault_id=vault_id, nonce=nonce)
            _require_signature(message, data.get('signature'), caller)
            event = service.withdraw(vault_id, caller, expected_nonce=nonce)
        except VaultError as e:
            return _error(e)

        return jsonify({
            'success': True,
            'amount': event.amount,
            'when': event.when,
            'receipt': service.get_receipt(vault_id).serialize()
        })

    @app.route('/api/vaults/<vault_id>/receipts')
    def get_receipts(vault_id):
        try:
            receipt = service.get_receipt(vault_id)
        except VaultError as e:
            return _error(e)
        return jsonify({'receipts': [receipt.serialize()] if receipt else []})

    return app

if __name__ == "__main__":
    config = Config.from_env()
    app = create_app(config=config)
    app.run(
        host="0.0.0.0",
        port=config.port,
        debug=False
    )
