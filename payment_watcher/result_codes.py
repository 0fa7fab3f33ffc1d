"""
Gateway result codes that warrant an alert.

All of them point at communication, timeout or connector trouble on the
gateway/acquirer side rather than at the shopper.
"""

UNDESIRABLE_CODES = (
    "100.390.111",  # Communication Error to Scheme Directory Server
    "000.400.030",  # Transaction partially failed (please reverse manually due to failed automatic reversal)
    "900.100.100",  # unexpected communication error with connector/acquirer
    "900.100.200",  # error response from connector/acquirer
    "900.100.201",  # error on the external gateway (e.g. on the part of the bank, acquirer,...)
    "900.100.202",  # invalid transaction flow, the requested function is not applicable for the referenced transaction.
    "900.100.203",  # error on the internal gateway
    "900.100.204",  # Error during message parsing
    "900.100.300",  # timeout, uncertain result
    "900.100.301",  # Transaction timed out without response from connector/acquirer. It was reversed.
    "900.100.310",  # Transaction timed out due to internal system misconfiguration. Request to acquirer has not been sent.
    "900.100.400",  # timeout at connectors/acquirer side
    "900.100.500",  # timeout at connectors/acquirer side (try later)
    "900.100.600",  # connector/acquirer currently down
    "900.100.700",  # error on the external service provider
    "900.200.100",  # Message Sequence Number of Connector out of sync
    "900.300.600",  # user session timeout
    "900.400.100",  # unexpected communication error with external risk provider
)


def parse_codes(raw: str) -> tuple:
    """
    Parse a comma separated FLAGGED_CODES value, keeping order and duplicates.
    """
    return tuple(code.strip() for code in raw.split(",") if code.strip())
