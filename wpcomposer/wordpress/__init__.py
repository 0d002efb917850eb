"""WordPress side of the sync.

Submodules:
- cli: WP-CLI wrappers
- wp_json: JSON extraction from WP-CLI output
- inventory: installed plugin/theme listing, install and uninstall
"""
