# Models package - marketplace tables
from leadscout.models.user import User
from leadscout.models.company import Company
from leadscout.models.scout import Scout
from leadscout.models.lead import Lead
from leadscout.models.moderation import ModerationAction
from leadscout.models.ledger import CreditTransaction
from leadscout.models.purchase import Purchase
from leadscout.models.payout import Payout
from leadscout.models.notification import Notification
