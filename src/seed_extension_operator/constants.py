"""Constants for the Seed Extension Operator."""

# API Groups
API_GROUP = "core.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

RESOURCES_API_GROUP = "resources.cloud37.dev"
RESOURCES_API_VERSION = "v1alpha1"

# Resource Kinds
KIND_INSTALLATION = "ControllerInstallation"
KIND_REGISTRATION = "ControllerRegistration"
KIND_DEPLOYMENT = "ControllerDeployment"
KIND_SEED = "Seed"
KIND_MANAGED_RESOURCE = "ManagedResource"

# Plurals
PLURAL_INSTALLATIONS = "controllerinstallations"
PLURAL_REGISTRATIONS = "controllerregistrations"
PLURAL_DEPLOYMENTS = "controllerdeployments"
PLURAL_SEEDS = "seeds"
PLURAL_MANAGED_RESOURCES = "managedresources"

# Deployment types
DEPLOYMENT_TYPE_HELM = "helm"

# Labels
LABEL_ROLE = "cloud37.dev/role"
ROLE_EXTENSION = "extension"
LABEL_REGISTRATION_NAME = f"registration.{API_GROUP}/name"

# Taints
SEED_TAINT_PROTECTED = "seed.cloud37.dev/protected"

# Finalizers
FINALIZER = f"{API_GROUP}/controllerinstallation"

# Field Manager
FIELD_MANAGER = "seed-extension-operator"

# Target namespace naming
NAMESPACE_PREFIX = "extension-"

# Key under which platform values are injected into every render
INJECTED_VALUES_KEY = "platform"

# Condition Types
COND_VALID = "Valid"
COND_INSTALLED = "Installed"

# Condition Status
STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

# Condition Reasons
REASON_INITIALIZED = "ConditionInitialized"
REASON_REGISTRATION_NOT_FOUND = "RegistrationNotFound"
REASON_REGISTRATION_READ_ERROR = "RegistrationReadError"
REASON_SEED_NOT_FOUND = "SeedNotFound"
REASON_SEED_READ_ERROR = "SeedReadError"
REASON_CHART_INFORMATION_INVALID = "ChartInformationInvalid"
REASON_CHART_CANNOT_BE_RENDERED = "ChartCannotBeRendered"
REASON_REGISTRATION_VALID = "RegistrationValid"
REASON_INSTALLATION_FAILED = "InstallationFailed"
REASON_INSTALLATION_PENDING = "InstallationPending"
REASON_DELETION_PENDING = "DeletionPending"
REASON_DELETION_FAILED = "DeletionFailed"
REASON_DELETION_SUCCESSFUL = "DeletionSuccessful"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_INSTALLATION_APPLIED = "InstallationApplied"
EVENT_REASON_DELETION_PENDING = "DeletionPending"
EVENT_REASON_DELETION_SUCCEEDED = "DeletionSucceeded"
