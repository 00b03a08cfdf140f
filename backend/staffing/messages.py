# Overview: User-facing messages for assignment rule and guard failures.

"""
Every rejection carries one of these. Keep them specific: the UI shows them
verbatim, and "operation failed" is never an acceptable answer.
"""

NO_CHANGE_SUFFIX = " No change was applied."


DELEGATION_MESSAGES = {
    "INVALID_EMPLOYEE": "Employee is required",
    "INVALID_STORE": "Destination store is required",
    "INVALID_DATES": "Valid dates are required",
    "MALFORMED_DATE": "Dates must be valid calendar dates (YYYY-MM-DD)",
    "INVALID_AUTO_RETURN": "auto_return must be true or false",
    "PAST_DATE": "Start date cannot be in the past",
    "END_BEFORE_START": "End date must be after start date",
    "TOO_LONG": "Delegation cannot exceed {max_days} days",
    "TOO_SHORT": "Delegation must be at least {min_days} day(s)",
    "SAME_STORE": "Cannot delegate to the same store",
    "SELF_ASSIGNMENT": "Cannot delegate employee to their current store. Employee is already assigned here.",
    "OVERLAPPING_DELEGATION": "Employee already has an active delegation",
    "PENDING_TRANSFER": "Employee has a pending transfer and cannot be delegated",
    "INSUFFICIENT_PERMISSIONS": "You do not have permission to delegate to this store",
    "ASM_OUT_OF_ZONE": "ASM can only delegate within their zone",
    "CROSS_ZONE": "Store managers cannot delegate across zones",
    "NOT_YOUR_EMPLOYEE": "You can only delegate employees from your store",
    "EMPLOYEE_NOT_FOUND": "Employee not found",
    "EMPLOYEE_NOT_ACTIVE": "Employee is not active",
    "STALE_SOURCE_STORE": "Employee is no longer assigned to the source store",
    "STORE_NOT_FOUND": "Destination store not found",
    "DELEGATION_NOT_FOUND": "Delegation not found",
    "ALREADY_ENDED": "Delegation has already ended ({status})",
    "REVOKE_NOT_ALLOWED": "You can only revoke delegations you created or that involve your store or zone",
    "EXTEND_NOT_ALLOWED": "You do not have permission to extend this delegation",
    "MAX_EXTENSIONS_REACHED": "Maximum number of extensions reached",
    "EXTENSION_NOT_LATER": "New end date must be after the current end date",
}


TRANSFER_MESSAGES = {
    "INVALID_EMPLOYEE": "Employee is required",
    "INVALID_STORE": "Destination store is required",
    "INVALID_TRANSFER_DATE": "Transfer date is required",
    "MALFORMED_TRANSFER_DATE": "Transfer date must be a valid calendar date (YYYY-MM-DD)",
    "PAST_TRANSFER_DATE": "Transfer date cannot be before today",
    "TRANSFER_DATE_TOO_FAR": "Transfer date is too far in the future (maximum {max_days} days)",
    "SAME_STORE": "Cannot transfer to the same store",
    "SELF_ASSIGNMENT": "Cannot transfer employee to their current store. Employee is already assigned here.",
    "EMPLOYEE_HAS_PENDING_TRANSFER": "Employee already has a pending transfer",
    "EMPLOYEE_IS_DELEGATED": "Employee is currently delegated and cannot be transferred",
    "INSUFFICIENT_PERMISSIONS": "You do not have permission to transfer to this store",
    "ASM_OUT_OF_ZONE": "You do not have permission to transfer employees outside your zone",
    "CROSS_ZONE": "Store managers cannot transfer between different zones",
    "NOT_YOUR_EMPLOYEE": "Employee is not part of your store",
    "EMPLOYEE_NOT_FOUND": "Employee not found",
    "EMPLOYEE_NOT_ACTIVE": "Employee is not active",
    "STALE_SOURCE_STORE": "Employee is no longer assigned to the source store",
    "STORE_NOT_FOUND": "Destination store not found",
    "TRANSFER_NOT_FOUND": "Transfer not found",
    "TRANSFER_ALREADY_PROCESSED": "Transfer has already been processed",
    "CANNOT_APPROVE_OWN_TRANSFER": "You cannot approve or reject your own transfer",
    "APPROVAL_NOT_ALLOWED": "You do not have permission to approve this transfer",
    "COMPLETE_NOT_ALLOWED": "You do not have permission to complete this transfer",
    "CANCEL_NOT_INITIATOR": "Only the initiator can cancel a transfer",
    "CANCEL_NOT_PENDING": "Only pending transfers can be cancelled",
    "NOT_APPROVED": "Only approved transfers can be completed",
    "NOT_YET_DUE": "Transfer is not yet due (scheduled for {transfer_date})",
    "SOURCE_STORE_MISMATCH": "Employee no longer belongs to the transfer source store. The transfer cannot be completed.",
    "COMPLETION_FAILED": "Transfer completion failed and was rolled back.",
}


PROFILE_MESSAGES = {
    "PROFILE_NOT_FOUND": "Caller profile not found",
    "NO_SCOPE": "Your profile has no role or assignment scope",
    "PROFILE_INACTIVE": "Caller profile is inactive",
    "OUT_OF_SCOPE": "You do not have access to this record",
}
