from dataclasses import dataclass


@dataclass(frozen=True)
class PortalSelectors:
    """CSS/text selectors for the iTax pages the automation drives.

    Kept together so a portal markup change is a one-file fix.
    """

    # Login form
    pin_input: str = "#logid"
    password_input: str = 'input[name="xxZTT9p2wQ"]'
    captcha_image: str = "#captcha_img"
    captcha_input: str = "#captcahText"
    login_button: str = "#loginButton"
    pin_precheck_script: str = "CheckPIN()"

    # Login outcome banners
    success_marker: str = "#ddtopmenubar"
    wrong_captcha_banner: str = 'b:has-text("Wrong result")'
    invalid_login_banner: str = 'b:has-text("Invalid Login")'
    password_expired_banner: str = '.formheading:has-text("PASSWORD HAS EXPIRED")'
    account_locked_banner: str = 'b:has-text("account has been locked")'

    # Logout
    logout_script: str = "logOutUser()"
    logged_out_marker: str = 'b:has-text("Click here to Login Again")'

    # PIN checker
    pin_checker_script: str = "pinchecker()"
    pin_checker_input: str = 'input[name="vo\\.pinNo"]'
    pin_checker_wrong_captcha: str = 'b:has-text("Wrong result of the arithmetic operation.")'
    pin_checker_main_table: str = "#pinCheckerForm > div:nth-child(9) > center > div > table"
    consult_button_name: str = "Consult"
    obligation_group_name: str = "Obligation Details"

    # Certificates
    applicant_type_select: str = "#applicantType"
    submit_button: str = ".submit"
    pin_certificate_download_script: str = "downloadPinCertificate()"
    tcc_table_rows: str = "#tbl tbody tr"
    tcc_download_link: str = "a.textDecorationUnderline"

    # General ledger
    ledger_tax_type_select: str = "#cmbTaxType"
    ledger_show_button: str = "#cmdShowLedger"
    ledger_group_select: str = "#chngroup"
    ledger_page_size_selects: str = "select.ui-pg-selbox"
    ledger_grid: str = "#gridGeneralLedgerDtlsTbl"

    # e-Returns / auto-population
    return_type_select: str = "#regType"
    select_tax_type_script: str = "showSelTaxType()"
    auto_population_button: str = "#dwnlod_btn_tims"
    e_returns_header: str = 'td.tablerowhead:has-text("e-Returns")'

    # Payment registration / liabilities
    payment_registration_button: str = "#openPayRegForm"
    tax_head_select: str = "#cmbTaxHead"
    tax_sub_head_select: str = "#cmbTaxSubHead"
    payment_type_select: str = "#cmbPaymentType"
    liability_table: str = "#LiablibilityTbl"


@dataclass(frozen=True)
class WinguSelectors:
    """Selectors for the WinguApps payroll portal."""

    email_placeholder: str = "Email"
    password_placeholder: str = "Password"
    login_button_name: str = "LOGIN"
    subscription_rows: str = "table tbody tr"
    admin_link: str = 'a[target="_blank"]'
    admin_login_button: str = 'button:has-text("Log In")'
    admin_username_placeholder: str = "Username"
    admin_login_button_name: str = "Log In"
    export_menu_link: str = "Export Payroll"
