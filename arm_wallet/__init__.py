"""
ARM Wallet Package

Client-side key hierarchy and confidential resource transfer.

Core imports are lazily loaded. For direct module access, import from submodules:

    from arm_wallet.hierarchy import derive_static_keys
    from arm_wallet.user_key import create_user_key, import_user_key
    from arm_wallet.transfer import seal_transfer, scan_payloads
    from arm_wallet.wallet import WalletSession
"""

__version__ = "1.0.0"

_LAZY = {
    'derive_static_keys': '.hierarchy',
    'generate_master_seed': '.hierarchy',
    'StaticKeySet': '.hierarchy',
    'UserKey': '.user_key',
    'create_user_key': '.user_key',
    'import_user_key': '.user_key',
    'Resource': '.resource',
    'seal_transfer': '.transfer',
    'open_transfer': '.transfer',
    'scan_payloads': '.transfer',
    'WalletSession': '.wallet',
    'ARMWalletError': '.exceptions',
}


def __getattr__(name):
    """Lazy module loading so importing the package does not configure logging."""
    if name in _LAZY:
        import importlib
        module = importlib.import_module(_LAZY[name], __name__)
        return getattr(module, name)
    raise AttributeError(f"module 'arm_wallet' has no attribute {name!r}")


__all__ = list(_LAZY)
